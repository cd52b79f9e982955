"""
Chats between swap partners and the messages inside them.

Sending a message always succeeds or fails on its own; the new-message
notification to the other participant is queued best-effort afterwards.
"""

import threading
from typing import Any, Callable, List, Optional, Sequence

from models.chat import Chat, FileAttachment, Message
from models.notification import NotificationKind
from notifications.notification_queue import notify_best_effort
from shared.db import (
    BOOKS_TABLE,
    CHATS_TABLE,
    MESSAGES_TABLE,
    SERVER_TIMESTAMP,
    get_supabase_client,
)


def create_or_get_chat(
    current_user_id: str,
    other_user_id: str,
    book_id: Optional[str] = None,
    supabase: Optional[Any] = None,
) -> Chat:
    """
    Return the chat between two users, creating it if none exists.

    Args:
        current_user_id: User opening the chat
        other_user_id: Swap partner
        book_id: Book the chat is about (only used when creating)
        supabase: Optional client

    Returns:
        The existing or newly created chat
    """
    if current_user_id == other_user_id:
        raise ValueError("Cannot open a chat with yourself")

    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(CHATS_TABLE)
        .select("*")
        .contains("participants", [current_user_id, other_user_id])
        .limit(1)
        .execute()
    )
    if response.data:
        return Chat.from_row(response.data[0])

    book_title = None
    if book_id:
        book_response = (
            supabase.table(BOOKS_TABLE).select("title").eq("id", book_id).limit(1).execute()
        )
        if book_response.data:
            book_title = book_response.data[0].get("title")

    created = (
        supabase.table(CHATS_TABLE)
        .insert(
            {
                "participants": [current_user_id, other_user_id],
                "book_id": book_id,
                "book_title": book_title,
                "created_at": SERVER_TIMESTAMP,
                "updated_at": SERVER_TIMESTAMP,
            }
        )
        .execute()
    )
    return Chat.from_row(created.data[0])


def get_chats(user_id: str, supabase: Optional[Any] = None) -> List[Chat]:
    """A user's chats, most recently active first."""
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(CHATS_TABLE)
        .select("*")
        .contains("participants", [user_id])
        .order("updated_at", desc=True)
        .execute()
    )
    return [Chat.from_row(row) for row in response.data or []]


def get_messages(chat_id: str, supabase: Optional[Any] = None) -> List[Message]:
    """All messages of a chat, oldest first."""
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(MESSAGES_TABLE)
        .select("*")
        .eq("chat_id", chat_id)
        .order("created_at", desc=False)
        .execute()
    )
    return [Message.from_row(row) for row in response.data or []]


def send_message(
    chat_id: str,
    sender_id: str,
    sender_name: str,
    content: str,
    attachments: Sequence[FileAttachment] = (),
    supabase: Optional[Any] = None,
) -> Message:
    """
    Post a message and notify the other participants.

    Raises:
        ValueError: If the message has neither text nor attachments
        LookupError: If the chat does not exist
        PermissionError: If the sender is not a participant
    """
    content = content.strip()
    if not content and not attachments:
        raise ValueError("Message must have text or attachments")

    supabase = supabase or get_supabase_client()
    chat_response = (
        supabase.table(CHATS_TABLE).select("*").eq("id", chat_id).limit(1).execute()
    )
    if not chat_response.data:
        raise LookupError(f"Chat {chat_id} not found")
    chat = Chat.from_row(chat_response.data[0])
    if sender_id not in chat.participants:
        raise PermissionError(f"User {sender_id} is not part of chat {chat_id}")

    response = (
        supabase.table(MESSAGES_TABLE)
        .insert(
            {
                "chat_id": chat_id,
                "sender_id": sender_id,
                "sender_name": sender_name or "Anonymous",
                "content": content,
                "attachments": [a.model_dump() for a in attachments],
                "created_at": SERVER_TIMESTAMP,
            }
        )
        .execute()
    )
    message = Message.from_row(response.data[0])

    preview = content or f"📎 {len(attachments)} attachment(s)"
    supabase.table(CHATS_TABLE).update(
        {"last_message": preview, "updated_at": SERVER_TIMESTAMP}
    ).eq("id", chat_id).execute()

    for recipient_id in chat.other_participants(sender_id):
        notify_best_effort(NotificationKind.NEW_MESSAGES, recipient_id)

    return message


class MessageWatcher:
    """
    Delivers the full, ordered message list of a chat whenever it changes.

    Polls the messages table on a background thread; the callback receives
    the whole snapshot, never a diff. Errors while polling are reported to
    `on_error` (if given) and polling continues.
    """

    def __init__(
        self,
        chat_id: str,
        callback: Callable[[List[Message]], None],
        interval: float = 2.0,
        on_error: Optional[Callable[[Exception], None]] = None,
        supabase: Optional[Any] = None,
    ):
        self.chat_id = chat_id
        self.callback = callback
        self.interval = interval
        self.on_error = on_error
        self._supabase = supabase
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_snapshot: Optional[List[tuple]] = None

    def poll_once(self) -> bool:
        """Fetch once; call the callback if the snapshot changed. Returns True if it did."""
        messages = get_messages(self.chat_id, self._supabase)
        snapshot = [(m.id, m.content, len(m.attachments)) for m in messages]
        if snapshot == self._last_snapshot:
            return False
        self._last_snapshot = snapshot
        self.callback(messages)
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                if self.on_error is None:
                    print(f"  ⚠️  Message watcher for chat {self.chat_id} failed: {e}")
                else:
                    self.on_error(e)
            self._stop.wait(self.interval)

    def start(self) -> "MessageWatcher":
        if self._thread is None:
            if self._supabase is None:
                self._supabase = get_supabase_client()
            self._thread = threading.Thread(
                target=self._run, name=f"chat-{self.chat_id}", daemon=True
            )
            self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1)
            self._thread = None
