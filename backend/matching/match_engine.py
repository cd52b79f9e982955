"""
Swap match scoring.

Compares the current user's owned/wanted books against every other user's
owned/wanted books and ranks the other users as swap partners.

Pure and synchronous: callers fetch the book lists first (see
matching.match_finder) and nothing here touches the store.
"""

import math
from enum import Enum
from typing import Dict, List, Optional, Sequence

from models.book import OwnedBook, WantedBook
from models.match import MAX_MATCH_SCORE, MatchCandidate

MIN_SHARED_WORD_LENGTH = 4


class MatchTier(int, Enum):
    """Score contributed by one owned book, by strongest rule it satisfies."""

    EXACT = 5
    AUTHOR = 2
    TITLE_WORD = 1


def _same_text(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def _title_words(title: str) -> set[str]:
    return set(title.lower().split())


def _shares_title_word(owned_title: str, wanted_title: str) -> bool:
    owned_words = _title_words(owned_title)
    return any(
        len(word) >= MIN_SHARED_WORD_LENGTH and word in owned_words
        for word in _title_words(wanted_title)
    )


def classify_book(book: OwnedBook, wanted: Sequence[WantedBook]) -> Optional[MatchTier]:
    """
    Find the strongest tier at which `book` satisfies any entry of `wanted`.

    Tiers are tried in order (exact title+author, author, shared title word)
    and the first that any wishlist entry satisfies wins, so a book is never
    counted twice. Every tier also requires the wishlist entry to accept the
    book's condition.

    Args:
        book: Book offered by one side
        wanted: The other side's wishlist

    Returns:
        The matching tier, or None if the book matches nothing
    """
    compatible = [w for w in wanted if w.accepts_condition(book.condition)]
    if not compatible:
        return None

    if any(
        _same_text(w.title, book.title) and _same_text(w.author, book.author)
        for w in compatible
    ):
        return MatchTier.EXACT

    if any(_same_text(w.author, book.author) for w in compatible):
        return MatchTier.AUTHOR

    if any(_shares_title_word(book.title, w.title) for w in compatible):
        return MatchTier.TITLE_WORD

    return None


def _collect_matches(
    books: Sequence[OwnedBook], wanted: Sequence[WantedBook]
) -> tuple[List[OwnedBook], int]:
    matched: List[OwnedBook] = []
    score = 0
    for book in books:
        tier = classify_book(book, wanted)
        if tier is not None:
            matched.append(book)
            score += tier.value
    return matched, score


def final_score(total_score: int) -> int:
    """Halve the raw total (rounding half up) and cap it at MAX_MATCH_SCORE."""
    return min(math.floor(total_score / 2 + 0.5), MAX_MATCH_SCORE)


def compute_matches(
    current_user_owned: Sequence[OwnedBook],
    current_user_wanted: Sequence[WantedBook],
    others_owned: Sequence[OwnedBook],
    others_wanted_by_user: Dict[str, List[WantedBook]],
) -> List[MatchCandidate]:
    """
    Rank other users as swap partners for the current user.

    Only users who own at least one book become candidates; a user with only
    wanted books is never listed. A candidate is kept only if at least one of
    the two offer lists is non-empty.

    Args:
        current_user_owned: Books the current user has
        current_user_wanted: Books the current user wants
        others_owned: Books owned by every other user (any order)
        others_wanted_by_user: Other users' wishlists keyed by user id

    Returns:
        Candidates sorted by score, highest first; ties keep the order in
        which their owners first appear in `others_owned`
    """
    # Group other users' books by owner, keeping first-seen order
    books_by_owner: Dict[str, List[OwnedBook]] = {}
    for book in others_owned:
        books_by_owner.setdefault(book.owner_id, []).append(book)

    candidates: List[MatchCandidate] = []
    for owner_id, owner_books in books_by_owner.items():
        owner_wanted = others_wanted_by_user.get(owner_id, [])

        they_offer, their_score = _collect_matches(owner_books, current_user_wanted)
        i_offer, my_score = _collect_matches(current_user_owned, owner_wanted)

        if not they_offer and not i_offer:
            continue

        first_book = owner_books[0]
        candidates.append(
            MatchCandidate(
                other_user_id=first_book.owner_id,
                other_user_name=first_book.owner_display_name,
                other_user_neighborhood=first_book.owner_neighborhood,
                books_they_offer_that_i_want=they_offer,
                books_i_offer_that_they_want=i_offer,
                score=final_score(their_score + my_score),
            )
        )

    # sorted() is stable, so equal scores keep discovery order
    return sorted(candidates, key=lambda c: c.score, reverse=True)
