"""Pydantic model for swap requests."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from models.types import BookID, UserID


class SwapStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


class SwapRequest(BaseModel):
    id: str
    requester_id: UserID
    requester_name: str
    book_id: BookID
    book_title: str
    book_author: str
    owner_id: UserID
    owner_name: str
    status: SwapStatus = SwapStatus.PENDING
    message: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SwapRequest":
        return cls.model_validate({**row, "id": str(row["id"])})
