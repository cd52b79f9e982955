"""Pydantic models for data validation and type checking."""

from models.book import BookCondition, OwnedBook, WantedBook, WantedCondition
from models.chat import Chat, FileAttachment, Message
from models.match import MAX_MATCH_SCORE, MatchCandidate
from models.notification import (
    DispatchOutcome,
    JobStatus,
    NotificationJob,
    NotificationKind,
    NotificationPreference,
    Priority,
)
from models.profile import Profile, ProfileUpdate
from models.swap import SwapRequest, SwapStatus

__all__ = [
    "BookCondition",
    "WantedCondition",
    "OwnedBook",
    "WantedBook",
    "MatchCandidate",
    "MAX_MATCH_SCORE",
    "NotificationKind",
    "NotificationPreference",
    "NotificationJob",
    "JobStatus",
    "DispatchOutcome",
    "Priority",
    "Profile",
    "ProfileUpdate",
    "Chat",
    "Message",
    "FileAttachment",
    "SwapRequest",
    "SwapStatus",
]
