"""
Unit tests for notifications/delivery.py

Tests the shared retry policy: attempt count, backoff delays and the
final result.
"""

import unittest
from unittest.mock import Mock, patch

import requests

from models.notification import NotificationKind
from notifications.delivery import backoff_delay, deliver_with_retry
from notifications.transports import HttpMailTransport
from tests.fixtures.mock_helpers import RecordingTransport


class TestBackoffDelay(unittest.TestCase):
    def test_doubles_each_attempt(self):
        self.assertEqual(backoff_delay(1, 0.5), 0.5)
        self.assertEqual(backoff_delay(2, 0.5), 1.0)
        self.assertEqual(backoff_delay(3, 0.5), 2.0)


class TestDeliverWithRetry(unittest.TestCase):
    """Tests for deliver_with_retry()."""

    def setUp(self):
        self.sleep = Mock()

    def _deliver(self, transport, **kwargs):
        return deliver_with_retry(
            transport,
            NotificationKind.NEW_MESSAGES,
            "reader@example.com",
            "user-1",
            sleep=self.sleep,
            **kwargs,
        )

    def test_first_attempt_succeeds(self):
        transport = RecordingTransport()

        result = self._deliver(transport)

        self.assertTrue(result.delivered)
        self.assertEqual(result.attempts, 1)
        self.assertEqual(len(transport.calls), 1)
        self.sleep.assert_not_called()

    def test_succeeds_on_third_attempt(self):
        transport = RecordingTransport(failures=2)

        result = self._deliver(transport)

        self.assertTrue(result.delivered)
        self.assertEqual(result.attempts, 3)
        self.assertEqual([c[0][0] for c in self.sleep.call_args_list], [0.5, 1.0])

    def test_gives_up_after_three_attempts(self):
        """No sleep after the final attempt."""
        transport = RecordingTransport(failures=5, error="HTTP 503")

        result = self._deliver(transport)

        self.assertFalse(result.delivered)
        self.assertEqual(result.attempts, 3)
        self.assertEqual(result.error, "HTTP 503")
        self.assertEqual(len(transport.calls), 3)
        self.assertEqual([c[0][0] for c in self.sleep.call_args_list], [0.5, 1.0])

    def test_custom_attempts_and_delay(self):
        transport = RecordingTransport(failures=10)

        result = self._deliver(transport, max_attempts=4, base_delay=1.0)

        self.assertEqual(result.attempts, 4)
        self.assertEqual(
            [c[0][0] for c in self.sleep.call_args_list], [1.0, 2.0, 4.0]
        )

    def test_passes_kind_email_and_user(self):
        transport = RecordingTransport()

        self._deliver(transport)

        self.assertEqual(
            transport.calls,
            [(NotificationKind.NEW_MESSAGES, "reader@example.com", "user-1")],
        )

    @patch("notifications.transports.requests.post")
    def test_http_timeouts_are_retried(self, mock_post):
        """A mail service that always times out is tried exactly three times."""
        mock_post.side_effect = requests.Timeout("read timed out")
        transport = HttpMailTransport("http://mail.test/api/email", timeout=8)

        result = self._deliver(transport)

        self.assertFalse(result.delivered)
        self.assertEqual(mock_post.call_count, 3)
        self.assertEqual(result.error, "Timed out after 8s")
        for call in mock_post.call_args_list:
            self.assertEqual(call.kwargs["timeout"], 8)


if __name__ == "__main__":
    unittest.main()
