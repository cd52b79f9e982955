"""
Swap matching for the book swap backend.

This module handles:
- Scoring other users' books against the current user's wishlist (and back)
- Ranking other users as swap candidates
"""

from .match_engine import compute_matches
from .match_finder import find_matches_for_user

__all__ = [
    "compute_matches",
    "find_matches_for_user",
]
