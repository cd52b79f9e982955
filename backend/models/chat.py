"""Pydantic models for chats, messages and their attachments."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.types import ChatID, MessageID, UserID


class FileAttachment(BaseModel):
    """File stored in the attachments bucket and linked from a message."""

    id: str
    name: str
    size: int = Field(..., ge=0)
    type: str
    path: str
    url: str


class Chat(BaseModel):
    id: ChatID
    participants: list[UserID] = Field(..., min_length=2)
    book_id: str | None = None
    book_title: str | None = None
    last_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def other_participants(self, user_id: str) -> list[UserID]:
        return [p for p in self.participants if p != user_id]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Chat":
        return cls.model_validate(
            {
                **row,
                "id": str(row["id"]),
                "participants": [str(p) for p in row.get("participants") or []],
            }
        )


class Message(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: MessageID
    chat_id: ChatID
    sender_id: UserID
    sender_name: str = "Anonymous"
    content: str = ""
    attachments: list[FileAttachment] = Field(default_factory=list)
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Message":
        return cls.model_validate(
            {
                **row,
                "id": str(row["id"]),
                "chat_id": str(row["chat_id"]),
                "sender_id": str(row["sender_id"]),
                "attachments": row.get("attachments") or [],
            }
        )
