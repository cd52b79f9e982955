"""Pydantic model for computed swap matches (never persisted)."""

from pydantic import BaseModel, Field

from models.book import OwnedBook
from models.types import UserID

MAX_MATCH_SCORE = 10


class MatchCandidate(BaseModel):
    """Another user worth swapping with, with the books behind the match."""

    other_user_id: UserID
    other_user_name: str
    other_user_neighborhood: str
    books_they_offer_that_i_want: list[OwnedBook] = Field(default_factory=list)
    books_i_offer_that_they_want: list[OwnedBook] = Field(default_factory=list)
    score: int = Field(..., ge=0, le=MAX_MATCH_SCORE)
