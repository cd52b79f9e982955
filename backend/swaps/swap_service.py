"""Swap requests between a requester and a book's owner."""

from typing import Any, Optional

from models.notification import NotificationKind
from models.swap import SwapRequest, SwapStatus
from notifications.notification_queue import notify_best_effort
from profiles.profile_service import get_profile
from shared.db import BOOKS_TABLE, SERVER_TIMESTAMP, SWAP_REQUESTS_TABLE, get_supabase_client


def create_swap_request(
    requester_id: str,
    requester_name: str,
    book_id: str,
    owner_id: str,
    message: Optional[str] = None,
    supabase: Optional[Any] = None,
) -> SwapRequest:
    """
    Ask a book's owner for a swap and notify them of the new match.

    Args:
        requester_id: User asking for the book
        requester_name: Display name shown to the owner
        book_id: Requested book
        owner_id: Book owner
        message: Optional note to the owner
        supabase: Optional client

    Returns:
        The stored swap request

    Raises:
        LookupError: If the book or the owner's profile does not exist
        ValueError: If requester and owner are the same user
    """
    if requester_id == owner_id:
        raise ValueError("Cannot request a swap for your own book")

    supabase = supabase or get_supabase_client()

    book_response = (
        supabase.table(BOOKS_TABLE)
        .select("title, author")
        .eq("id", book_id)
        .limit(1)
        .execute()
    )
    if not book_response.data:
        raise LookupError("Book not found")
    book = book_response.data[0]

    owner = get_profile(owner_id, supabase)
    if owner is None:
        raise LookupError("Owner not found")

    response = (
        supabase.table(SWAP_REQUESTS_TABLE)
        .insert(
            {
                "requester_id": requester_id,
                "requester_name": requester_name,
                "book_id": book_id,
                "book_title": book["title"],
                "book_author": book["author"],
                "owner_id": owner_id,
                "owner_name": owner.name,
                "status": SwapStatus.PENDING.value,
                "message": message or "",
                "created_at": SERVER_TIMESTAMP,
                "updated_at": SERVER_TIMESTAMP,
            }
        )
        .execute()
    )
    swap_request = SwapRequest.from_row(response.data[0])
    print(f"✓ Swap requested: {book['title']} ({requester_id} -> {owner_id})")

    notify_best_effort(NotificationKind.NEW_MATCHES, owner_id)
    return swap_request
