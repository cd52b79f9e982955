"""
Owned and wanted book listings.

A book's neighborhood always comes from its owner's profile; edits cannot
set it directly (see profiles.profile_service.cascade_neighborhood).
Listing a book notifies every other user who wants the same title and
author; that notification is best-effort and never fails the listing.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from models.book import (
    UNKNOWN_NEIGHBORHOOD,
    BookCondition,
    OwnedBook,
    WantedBook,
    WantedCondition,
)
from models.notification import NotificationKind
from notifications.error_logger import log_notification_error
from notifications.notification_queue import notify_best_effort
from profiles.profile_service import get_profile
from shared.db import BOOKS_TABLE, SERVER_TIMESTAMP, WANTED_BOOKS_TABLE, get_supabase_client

# Fields an owner may change after listing
EDITABLE_FIELDS = ("title", "author", "condition", "description", "genres", "google_books_id")


def _same_text(value: Any, expected: str) -> bool:
    return str(value or "").strip().lower() == expected.lower()


def _like_literal(text: str) -> str:
    """Escape LIKE wildcards so ilike compares the whole value literally."""
    return re.sub(r"([\\%_*])", r"\\\1", text)


class BookValidationError(ValueError):
    """Submitted book data is missing or invalid."""


def _require_text(data: Mapping[str, Any], field: str) -> str:
    value = str(data.get(field) or "").strip()
    if not value:
        raise BookValidationError(f"{field} is required")
    return value


def _parse_condition(value: Any, wanted: bool) -> str:
    try:
        if wanted:
            return WantedCondition(value if value is not None else "any").value
        return BookCondition(value).value
    except ValueError:
        raise BookValidationError(f"Unknown book condition: {value!r}") from None


def _clean_edits(changes: Mapping[str, Any], wanted: bool) -> Dict[str, Any]:
    edits = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    for field in ("title", "author"):
        if field in edits:
            edits[field] = _require_text(edits, field)
    if "condition" in edits:
        edits["condition"] = _parse_condition(edits["condition"], wanted)
    if not edits:
        raise BookValidationError("No editable fields supplied")
    edits["updated_at"] = SERVER_TIMESTAMP
    return edits


def add_book(
    user_id: str, book_data: Mapping[str, Any], supabase: Optional[Any] = None
) -> OwnedBook:
    """
    List a book the user has.

    Args:
        user_id: Owner's profile ID
        book_data: title, author, condition and optional description,
            genres, google_books_id
        supabase: Optional client

    Returns:
        The stored book

    Raises:
        BookValidationError: If title, author or condition is missing/invalid
    """
    supabase = supabase or get_supabase_client()
    title = _require_text(book_data, "title")
    author = _require_text(book_data, "author")
    condition = _parse_condition(book_data.get("condition"), wanted=False)

    profile = get_profile(user_id, supabase)
    neighborhood = (profile.neighborhood if profile else None) or UNKNOWN_NEIGHBORHOOD

    row = {
        "title": title,
        "author": author,
        "condition": condition,
        "description": book_data.get("description"),
        "genres": list(book_data.get("genres") or []),
        "google_books_id": book_data.get("google_books_id"),
        "neighborhood": neighborhood,
        "owner_id": user_id,
        "owner_name": profile.name if profile else "Anonymous",
        "owner_neighborhood": neighborhood,
        "created_at": SERVER_TIMESTAMP,
        "updated_at": SERVER_TIMESTAMP,
    }
    response = supabase.table(BOOKS_TABLE).insert(row).execute()
    book = OwnedBook.from_row(response.data[0])
    print(f"✓ Listed: {book.title} by {book.author}")

    notify_users_wanting(book, supabase)
    return book


def notify_users_wanting(book: OwnedBook, supabase: Optional[Any] = None) -> int:
    """
    Queue book-availability notifications for users who want this book.

    Matches wishlist entries on title and author, case-insensitively, and
    skips the owner. Never raises.

    Returns:
        Number of users notified
    """
    try:
        supabase = supabase or get_supabase_client()
        response = (
            supabase.table(WANTED_BOOKS_TABLE)
            .select("user_id, title, author")
            .ilike("title", _like_literal(book.title))
            .ilike("author", _like_literal(book.author))
            .execute()
        )
    except Exception as e:
        error_file = log_notification_error(
            error_type="queuing",
            error_message=str(e),
            context={"book_id": book.id, "kind": NotificationKind.BOOK_AVAILABILITY.value},
        )
        print(f"  ⚠️  Could not look up wishlists. Details logged to: {error_file}")
        return 0

    recipients: List[str] = []
    for row in response.data or []:
        user_id = row.get("user_id")
        if not user_id or user_id == book.owner_id or user_id in recipients:
            continue
        if _same_text(row.get("title"), book.title) and _same_text(
            row.get("author"), book.author
        ):
            recipients.append(user_id)

    for user_id in recipients:
        notify_best_effort(NotificationKind.BOOK_AVAILABILITY, user_id)

    if recipients:
        print(f"  Found {len(recipients)} users wanting this book")
    return len(recipients)


def add_wanted_book(
    user_id: str, book_data: Mapping[str, Any], supabase: Optional[Any] = None
) -> WantedBook:
    """
    Add a book to the user's wishlist.

    A missing condition (or "No Preference") is stored as "any".

    Raises:
        BookValidationError: If title or author is missing, or condition unknown
    """
    supabase = supabase or get_supabase_client()
    title = _require_text(book_data, "title")
    author = _require_text(book_data, "author")
    condition = _parse_condition(book_data.get("condition"), wanted=True)

    profile = get_profile(user_id, supabase)
    row = {
        "title": title,
        "author": author,
        "condition": condition,
        "description": book_data.get("description"),
        "genres": list(book_data.get("genres") or []),
        "google_books_id": book_data.get("google_books_id"),
        "neighborhood": (profile.neighborhood if profile else None)
        or UNKNOWN_NEIGHBORHOOD,
        "user_id": user_id,
        "created_at": SERVER_TIMESTAMP,
        "updated_at": SERVER_TIMESTAMP,
    }
    response = supabase.table(WANTED_BOOKS_TABLE).insert(row).execute()
    return WantedBook.from_row(response.data[0])


def update_book(
    book_id: str, changes: Mapping[str, Any], supabase: Optional[Any] = None
) -> OwnedBook:
    """
    Edit a listed book. Neighborhood and owner fields are ignored.

    Raises:
        BookValidationError: If nothing editable was supplied or values are invalid
        LookupError: If the book does not exist
    """
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(BOOKS_TABLE)
        .update(_clean_edits(changes, wanted=False))
        .eq("id", book_id)
        .execute()
    )
    if not response.data:
        raise LookupError(f"Book {book_id} not found")
    return OwnedBook.from_row(response.data[0])


def update_wanted_book(
    book_id: str, changes: Mapping[str, Any], supabase: Optional[Any] = None
) -> WantedBook:
    """Edit a wishlist entry. Same rules as update_book."""
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(WANTED_BOOKS_TABLE)
        .update(_clean_edits(changes, wanted=True))
        .eq("id", book_id)
        .execute()
    )
    if not response.data:
        raise LookupError(f"Wanted book {book_id} not found")
    return WantedBook.from_row(response.data[0])


def delete_book(book_id: str, supabase: Optional[Any] = None) -> None:
    supabase = supabase or get_supabase_client()
    supabase.table(BOOKS_TABLE).delete().eq("id", book_id).execute()


def delete_wanted_book(book_id: str, supabase: Optional[Any] = None) -> None:
    supabase = supabase or get_supabase_client()
    supabase.table(WANTED_BOOKS_TABLE).delete().eq("id", book_id).execute()


def get_books_by_user(user_id: str, supabase: Optional[Any] = None) -> List[OwnedBook]:
    """Books a user has listed, newest first."""
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(BOOKS_TABLE)
        .select("*")
        .eq("owner_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [OwnedBook.from_row(row) for row in response.data or []]


def get_wanted_books_by_user(
    user_id: str, supabase: Optional[Any] = None
) -> List[WantedBook]:
    """A user's wishlist, newest first."""
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(WANTED_BOOKS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [WantedBook.from_row(row) for row in response.data or []]
