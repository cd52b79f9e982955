"""Pydantic models for the notification system."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from models.types import JobID, UserID


class NotificationKind(str, Enum):
    """Triggering event. Values double as the preference keys."""

    NEW_MESSAGES = "new_messages"
    NEW_MATCHES = "new_matches"
    BOOK_AVAILABILITY = "book_availability"


class Priority(str, Enum):
    """HIGH skips the preference gate; everything else about delivery is the same."""

    NORMAL = "normal"
    HIGH = "high"


class JobStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class DispatchOutcome(str, Enum):
    """Terminal state of one dispatch."""

    SKIPPED = "skipped"
    EMAIL_INVALID = "email_invalid"
    DELIVERED = "delivered"
    EXHAUSTED_RETRIES = "exhausted_retries"

    @property
    def job_status(self) -> JobStatus:
        if self is DispatchOutcome.DELIVERED:
            return JobStatus.SENT
        if self is DispatchOutcome.EXHAUSTED_RETRIES:
            return JobStatus.FAILED
        return JobStatus.SKIPPED


class NotificationPreference(BaseModel):
    """Per-user opt-in flags. A missing record or flag means enabled."""

    user_id: UserID
    new_matches: bool = True
    book_availability: bool = True
    new_messages: bool = True

    def allows(self, kind: NotificationKind) -> bool:
        return bool(getattr(self, kind.value))

    @classmethod
    def from_settings(
        cls, user_id: str, settings: dict[str, Any] | None
    ) -> "NotificationPreference":
        """Build from a profile's `email_notifications` map, defaulting to enabled."""
        settings = settings or {}
        return cls(
            user_id=UserID(user_id),
            **{
                kind.value: bool(
                    True if settings.get(kind.value) is None else settings[kind.value]
                )
                for kind in NotificationKind
            },
        )

    def to_settings(self) -> dict[str, bool]:
        return {kind.value: self.allows(kind) for kind in NotificationKind}


class NotificationJob(BaseModel):
    """One queued notification for one recipient."""

    id: JobID | None = None
    kind: NotificationKind
    recipient_user_id: UserID
    recipient_email: str | None = None
    priority: Priority = Priority.NORMAL
    status: JobStatus = JobStatus.PENDING
    attempts: int = Field(0, ge=0)
    error_message: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "NotificationJob":
        return cls(
            id=JobID(str(row["id"])) if row.get("id") is not None else None,
            kind=NotificationKind(row["kind"]),
            recipient_user_id=UserID(str(row["recipient_user_id"])),
            recipient_email=row.get("recipient_email"),
            priority=Priority(row.get("priority") or Priority.NORMAL.value),
            status=JobStatus(row.get("status") or JobStatus.PENDING.value),
            attempts=row.get("attempts") or 0,
            error_message=row.get("error_message"),
        )

    def to_row(self) -> dict[str, Any]:
        """Columns written when the job is first queued."""
        return {
            "kind": self.kind.value,
            "recipient_user_id": self.recipient_user_id,
            "priority": self.priority.value,
            "status": self.status.value,
            "attempts": self.attempts,
        }
