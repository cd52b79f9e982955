"""
Unit tests for notifications/email_templates.py
"""

import unittest

from models.notification import NotificationKind
from notifications.email_templates import build_notification_email


class TestBuildNotificationEmail(unittest.TestCase):
    """Tests for build_notification_email()."""

    def test_subject_per_kind(self):
        expected = {
            NotificationKind.NEW_MESSAGES: "New Message - Book Swap",
            NotificationKind.NEW_MATCHES: "New Book Match - Book Swap",
            NotificationKind.BOOK_AVAILABILITY: "Book Available - Book Swap",
        }
        for kind, subject in expected.items():
            with self.subTest(kind=kind):
                content = build_notification_email(kind, "http://app.test")
                self.assertEqual(content.subject, subject)

    def test_links_back_into_app(self):
        content = build_notification_email(NotificationKind.NEW_MATCHES, "http://app.test")

        self.assertIn("http://app.test/matches", content.text)
        self.assertIn('href="http://app.test/matches"', content.html)
        self.assertIn("http://app.test/profile", content.text)

    def test_no_unsubscribe_link_by_default(self):
        content = build_notification_email(NotificationKind.NEW_MESSAGES, "http://app.test")

        self.assertNotIn("Stop these emails", content.text)
        self.assertNotIn("Stop these emails", content.html)

    def test_unsubscribe_link_is_escaped(self):
        content = build_notification_email(
            NotificationKind.NEW_MESSAGES,
            "http://app.test",
            unsubscribe_url="http://app.test/unsubscribe?token=abc&x=1",
        )

        self.assertIn("Stop these emails: http://app.test/unsubscribe?token=abc&x=1", content.text)
        self.assertIn("token=abc&amp;x=1", content.html)


if __name__ == "__main__":
    unittest.main()
