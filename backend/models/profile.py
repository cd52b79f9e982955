"""Pydantic models for user profiles."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.notification import NotificationPreference
from models.types import UserID


class Profile(BaseModel):
    """User profile. `neighborhood` is the default copied onto every book."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: UserID
    email: str | None = None
    display_name: str | None = None
    username: str | None = None
    neighborhood: str | None = None
    bio: str | None = None
    notification_preferences: NotificationPreference

    @property
    def name(self) -> str:
        return self.display_name or self.username or "Unknown User"

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Profile":
        user_id = str(row.get("id", ""))
        return cls(
            id=UserID(user_id),
            email=row.get("email") or None,
            display_name=row.get("display_name"),
            username=row.get("username"),
            neighborhood=row.get("neighborhood"),
            bio=row.get("bio"),
            notification_preferences=NotificationPreference.from_settings(
                user_id, row.get("email_notifications")
            ),
        )


class ProfileUpdate(BaseModel):
    """Editable profile fields. Unset fields are left untouched."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    display_name: str | None = Field(None, min_length=1)
    username: str | None = Field(None, min_length=1)
    neighborhood: str | None = Field(None, min_length=1)
    bio: str | None = None
    email: str | None = Field(None, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
