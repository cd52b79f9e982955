"""
Fetches book lists from the store and runs the match engine for one user.

Store errors (network, permission) propagate to the caller unchanged.
"""

from typing import Any, Dict, List, Optional

from matching.match_engine import compute_matches
from models.book import OwnedBook, WantedBook
from models.match import MatchCandidate
from shared.db import BOOKS_TABLE, WANTED_BOOKS_TABLE, get_supabase_client


def _fetch_owned(supabase: Any, user_id: str, *, others: bool) -> List[OwnedBook]:
    query = supabase.table(BOOKS_TABLE).select("*")
    query = query.neq("owner_id", user_id) if others else query.eq("owner_id", user_id)
    response = query.order("created_at", desc=False).execute()
    return [OwnedBook.from_row(row) for row in response.data or []]


def _fetch_wanted(supabase: Any, user_id: str, *, others: bool) -> List[WantedBook]:
    query = supabase.table(WANTED_BOOKS_TABLE).select("*")
    query = query.neq("user_id", user_id) if others else query.eq("user_id", user_id)
    response = query.order("created_at", desc=False).execute()
    return [WantedBook.from_row(row) for row in response.data or []]


def group_wanted_by_user(wanted: List[WantedBook]) -> Dict[str, List[WantedBook]]:
    """Group wishlist entries by the user who wants them."""
    grouped: Dict[str, List[WantedBook]] = {}
    for book in wanted:
        grouped.setdefault(book.user_id, []).append(book)
    return grouped


def find_matches_for_user(
    user_id: str, supabase: Optional[Any] = None
) -> List[MatchCandidate]:
    """
    Compute ranked swap candidates for a user.

    Args:
        user_id: The user to find swap partners for
        supabase: Optional client (defaults to a new service client)

    Returns:
        Candidates sorted by score, highest first
    """
    supabase = supabase or get_supabase_client()

    my_owned = _fetch_owned(supabase, user_id, others=False)
    my_wanted = _fetch_wanted(supabase, user_id, others=False)
    others_owned = _fetch_owned(supabase, user_id, others=True)
    others_wanted = _fetch_wanted(supabase, user_id, others=True)

    return compute_matches(
        my_owned, my_wanted, others_owned, group_wanted_by_user(others_wanted)
    )
