"""Pydantic models for owned and wanted books."""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.types import BookID, GenreTags, UserID

UNKNOWN_NEIGHBORHOOD = "Unknown"
UNKNOWN_USER = "Unknown User"


def _condition_key(value: str) -> str:
    return re.sub(r"[\s_-]+", "", value).lower()


class BookCondition(str, Enum):
    """Physical-quality grade of an owned book."""

    LIKE_NEW = "Like New"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @classmethod
    def _missing_(cls, value: object) -> "BookCondition | None":
        # Store rows spell conditions inconsistently ("like_new", "very good")
        if isinstance(value, str):
            key = _condition_key(value)
            for member in cls:
                if _condition_key(member.value) == key:
                    return member
        return None


class WantedCondition(str, Enum):
    """Desired condition on a wishlist entry. ANY matches every grade."""

    LIKE_NEW = "Like New"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    ANY = "any"

    @classmethod
    def _missing_(cls, value: object) -> "WantedCondition | None":
        if isinstance(value, str):
            key = _condition_key(value)
            if key in ("any", "nopreference", ""):
                return cls.ANY
            for member in cls:
                if _condition_key(member.value) == key:
                    return member
        return None


class _BookBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: BookID
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    neighborhood: str = UNKNOWN_NEIGHBORHOOD
    external_catalog_id: str | None = None
    genre_tags: GenreTags = Field(default_factory=list)

    @field_validator("genre_tags", mode="before")
    @classmethod
    def _dedupe_genres(cls, value: Any) -> list[str]:
        """Genre tags behave as a set; keep first-seen order for display."""
        if value is None:
            return []
        tags: list[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class OwnedBook(_BookBase):
    """A book a user has and is willing to swap."""

    condition: BookCondition
    owner_id: UserID
    owner_display_name: str = UNKNOWN_USER
    owner_neighborhood: str = UNKNOWN_NEIGHBORHOOD

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "OwnedBook":
        """
        Coerce a `books` row into an OwnedBook.

        Accepts both the flat column layout (owner_id, owner_name,
        owner_neighborhood) and the nested `owner` map older rows carry.

        Raises:
            pydantic.ValidationError: If required fields are missing or invalid
        """
        owner = row.get("owner") or {}
        return cls.model_validate(
            {
                "id": str(row.get("id", "")),
                "title": row.get("title") or "",
                "author": row.get("author") or "",
                "condition": row.get("condition"),
                "neighborhood": row.get("neighborhood") or UNKNOWN_NEIGHBORHOOD,
                "owner_id": row.get("owner_id") or owner.get("id"),
                "owner_display_name": row.get("owner_name")
                or owner.get("name")
                or UNKNOWN_USER,
                "owner_neighborhood": row.get("owner_neighborhood")
                or owner.get("neighborhood")
                or UNKNOWN_NEIGHBORHOOD,
                "external_catalog_id": row.get("google_books_id"),
                "genre_tags": row.get("genres"),
            }
        )


class WantedBook(_BookBase):
    """A book a user is looking for."""

    desired_condition: WantedCondition = WantedCondition.ANY
    user_id: UserID

    def accepts_condition(self, condition: BookCondition) -> bool:
        """True if an owned book in `condition` satisfies this wishlist entry."""
        if self.desired_condition is WantedCondition.ANY:
            return True
        return self.desired_condition.value == condition.value

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "WantedBook":
        """
        Coerce a `wanted_books` row into a WantedBook.

        Raises:
            pydantic.ValidationError: If required fields are missing or invalid
        """
        condition = row.get("condition")
        return cls.model_validate(
            {
                "id": str(row.get("id", "")),
                "title": row.get("title") or "",
                "author": row.get("author") or "",
                "desired_condition": WantedCondition.ANY
                if condition is None
                else condition,
                "neighborhood": row.get("neighborhood") or UNKNOWN_NEIGHBORHOOD,
                "user_id": row.get("user_id"),
                "external_catalog_id": row.get("google_books_id"),
                "genre_tags": row.get("genres"),
            }
        )
