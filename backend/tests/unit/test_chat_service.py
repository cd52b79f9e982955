"""
Unit tests for chat/chat_service.py

Tests chat creation, message sending with best-effort notification and
the polling message watcher.
"""

import threading
import unittest
from unittest.mock import Mock, patch

from chat.chat_service import (
    MessageWatcher,
    create_or_get_chat,
    get_chats,
    get_messages,
    send_message,
)
from models.chat import FileAttachment
from models.notification import NotificationKind
from tests.fixtures.mock_helpers import create_mock_supabase, create_mock_supabase_tables


def chat_row(chat_id="chat-1", participants=("user-a", "user-b"), **overrides):
    row = {
        "id": chat_id,
        "participants": list(participants),
        "book_id": None,
        "book_title": None,
        "last_message": None,
    }
    row.update(overrides)
    return row


def message_row(
    message_id="m1", chat_id="chat-1", sender_id="user-a", content="Hi", **overrides
):
    row = {
        "id": message_id,
        "chat_id": chat_id,
        "sender_id": sender_id,
        "sender_name": "Alice",
        "content": content,
        "attachments": [],
        "created_at": "2026-10-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestCreateOrGetChat(unittest.TestCase):
    """Tests for create_or_get_chat()."""

    def test_returns_existing_chat(self):
        chats = create_mock_supabase([chat_row()])
        mock_supabase = create_mock_supabase_tables({"chats": chats})

        chat = create_or_get_chat("user-a", "user-b", supabase=mock_supabase)

        self.assertEqual(chat.id, "chat-1")
        chats.contains.assert_called_once_with("participants", ["user-a", "user-b"])
        chats.insert.assert_not_called()

    def test_creates_chat_with_book_title(self):
        chats = create_mock_supabase([])
        chats.insert.return_value = create_mock_supabase(
            [chat_row(chat_id="chat-2", book_id="b1", book_title="Dune")]
        )
        books = create_mock_supabase([{"title": "Dune"}])
        mock_supabase = create_mock_supabase_tables({"chats": chats, "books": books})

        chat = create_or_get_chat("user-a", "user-b", book_id="b1", supabase=mock_supabase)

        self.assertEqual(chat.id, "chat-2")
        row = chats.insert.call_args[0][0]
        self.assertEqual(row["participants"], ["user-a", "user-b"])
        self.assertEqual(row["book_title"], "Dune")

    def test_no_chat_with_yourself(self):
        with self.assertRaises(ValueError):
            create_or_get_chat("user-a", "user-a", supabase=create_mock_supabase())


@patch("chat.chat_service.notify_best_effort")
class TestSendMessage(unittest.TestCase):
    """Tests for send_message()."""

    def setUp(self):
        self.chats = create_mock_supabase([chat_row()])
        self.messages = create_mock_supabase([message_row(content="Still have Dune?")])
        self.mock_supabase = create_mock_supabase_tables(
            {"chats": self.chats, "messages": self.messages}
        )

    def test_stores_message_and_notifies_other_participant(self, mock_notify):
        message = send_message(
            "chat-1", "user-a", "Alice", "  Still have Dune?  ", supabase=self.mock_supabase
        )

        self.assertEqual(message.content, "Still have Dune?")
        row = self.messages.insert.call_args[0][0]
        self.assertEqual(row["content"], "Still have Dune?")
        self.assertEqual(row["sender_id"], "user-a")
        self.assertEqual(
            self.chats.update.call_args[0][0]["last_message"], "Still have Dune?"
        )
        mock_notify.assert_called_once_with(NotificationKind.NEW_MESSAGES, "user-b")

    def test_notification_failure_does_not_fail_send(self, mock_notify):
        """notify_best_effort reports failure instead of raising."""
        mock_notify.return_value = False

        message = send_message("chat-1", "user-a", "Alice", "Hi", supabase=self.mock_supabase)

        self.assertIsNotNone(message)
        self.messages.insert.assert_called_once()

    def test_attachments_only(self, mock_notify):
        attachment = FileAttachment(
            id="f1",
            name="cover.png",
            size=10,
            type="image/png",
            path="chat-1/user-a/f1_cover.png",
            url="https://signed",
        )

        send_message("chat-1", "user-a", "Alice", "", [attachment], supabase=self.mock_supabase)

        row = self.messages.insert.call_args[0][0]
        self.assertEqual(row["attachments"][0]["name"], "cover.png")
        self.assertIn("1 attachment", self.chats.update.call_args[0][0]["last_message"])

    def test_empty_message_rejected(self, mock_notify):
        with self.assertRaises(ValueError):
            send_message("chat-1", "user-a", "Alice", "   ", supabase=self.mock_supabase)
        self.messages.insert.assert_not_called()
        mock_notify.assert_not_called()

    def test_missing_chat(self, mock_notify):
        self.chats.execute.return_value.data = []

        with self.assertRaises(LookupError):
            send_message("ghost", "user-a", "Alice", "Hi", supabase=self.mock_supabase)

    def test_sender_must_be_participant(self, mock_notify):
        with self.assertRaises(PermissionError):
            send_message("chat-1", "user-z", "Zed", "Hi", supabase=self.mock_supabase)
        self.messages.insert.assert_not_called()


class TestGetMessages(unittest.TestCase):
    def test_oldest_first(self):
        mock_supabase = create_mock_supabase(
            [message_row(message_id="m1"), message_row(message_id="m2")]
        )

        messages = get_messages("chat-1", mock_supabase)

        self.assertEqual([m.id for m in messages], ["m1", "m2"])
        mock_supabase.eq.assert_called_with("chat_id", "chat-1")
        mock_supabase.order.assert_called_with("created_at", desc=False)


class TestGetChats(unittest.TestCase):
    def test_most_recent_first(self):
        mock_supabase = create_mock_supabase(
            [chat_row(chat_id="chat-2"), chat_row(chat_id="chat-1")]
        )

        chats = get_chats("user-a", mock_supabase)

        self.assertEqual([c.id for c in chats], ["chat-2", "chat-1"])
        mock_supabase.contains.assert_called_with("participants", ["user-a"])
        mock_supabase.order.assert_called_with("updated_at", desc=True)


class TestMessageWatcher(unittest.TestCase):
    """Tests for MessageWatcher."""

    def test_delivers_full_snapshot_only_on_change(self):
        mock_supabase = create_mock_supabase([message_row(message_id="m1")])
        callback = Mock()
        watcher = MessageWatcher("chat-1", callback, supabase=mock_supabase)

        self.assertTrue(watcher.poll_once())
        self.assertFalse(watcher.poll_once())

        mock_supabase.execute.return_value.data = [
            message_row(message_id="m1"),
            message_row(message_id="m2", sender_id="user-b", content="Yes!"),
        ]
        self.assertTrue(watcher.poll_once())

        self.assertEqual(callback.call_count, 2)
        snapshot = callback.call_args[0][0]
        self.assertEqual([m.id for m in snapshot], ["m1", "m2"])

    def test_errors_reported_and_polling_continues(self):
        calls = []

        def execute():
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError("offline")
            return Mock(data=[message_row()])

        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = execute
        received = threading.Event()
        on_error = Mock()
        callback = Mock(side_effect=lambda messages: received.set())
        watcher = MessageWatcher(
            "chat-1", callback, interval=0.01, on_error=on_error, supabase=mock_supabase
        )

        watcher.start()
        try:
            self.assertTrue(received.wait(timeout=5))
        finally:
            watcher.stop()

        on_error.assert_called_once()
        self.assertIsInstance(on_error.call_args[0][0], ConnectionError)
        callback.assert_called_once()


if __name__ == "__main__":
    unittest.main()
