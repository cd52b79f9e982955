"""
Notification preference and recipient lookup.

Reads a recipient's opt-in flags and email address from their profile.
Lookups fail open: if the store cannot be read, every kind counts as enabled
(the send itself still needs an address).
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional

from models.notification import NotificationKind, NotificationPreference
from models.types import UserID
from notifications.error_logger import log_notification_error
from shared.db import PROFILES_TABLE, get_supabase_client


@dataclass(frozen=True)
class PreferenceCheck:
    """Result of the preference gate for one recipient and kind."""

    should_send: bool
    email: Optional[str]
    preference: NotificationPreference


def _fetch_profile_field(supabase: Any, user_id: str, field: str) -> Optional[Any]:
    response = (
        supabase.table(PROFILES_TABLE)
        .select(field)
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        return None
    return response.data[0].get(field)


def get_notification_preferences(
    user_id: str, supabase: Optional[Any] = None
) -> NotificationPreference:
    """
    Get a user's notification preferences.

    Args:
        user_id: Profile ID
        supabase: Optional client (defaults to a new service client)

    Returns:
        The stored preferences, or all-enabled defaults when the profile,
        the flag, or the store itself is unavailable
    """
    try:
        supabase = supabase or get_supabase_client()
        settings = _fetch_profile_field(supabase, user_id, "email_notifications")
    except Exception as e:
        error_file = log_notification_error(
            error_type="preferences",
            error_message=str(e),
            context={"user_id": user_id, "fallback": "all notifications enabled"},
        )
        print(
            f"  ⚠️  Could not read preferences for user {user_id}, assuming enabled. "
            f"Details logged to: {error_file}"
        )
        return NotificationPreference(user_id=UserID(user_id))

    return NotificationPreference.from_settings(user_id, settings)


def get_user_email(user_id: str, supabase: Optional[Any] = None) -> Optional[str]:
    """Get a user's email address, or None if absent or unreadable."""
    try:
        supabase = supabase or get_supabase_client()
        email = _fetch_profile_field(supabase, user_id, "email")
    except Exception as e:
        log_notification_error(
            error_type="preferences",
            error_message=str(e),
            context={"user_id": user_id, "lookup": "email"},
        )
        print(f"  ⚠️  Could not read email for user {user_id}")
        return None

    return email or None


def should_send_notification(
    user_id: str, kind: NotificationKind, supabase: Optional[Any] = None
) -> PreferenceCheck:
    """
    Decide whether a user wants a notification of this kind.

    Preferences and email are fetched concurrently.

    Args:
        user_id: Recipient profile ID
        kind: Notification kind being sent
        supabase: Optional client shared by both lookups

    Returns:
        PreferenceCheck with should_send = preference enabled and email present
    """
    try:
        supabase = supabase or get_supabase_client()
    except ValueError as e:
        # Misconfigured client: same fail-open/no-email result as a store outage
        log_notification_error(
            error_type="preferences", error_message=str(e), context={"user_id": user_id}
        )
        return PreferenceCheck(
            should_send=False,
            email=None,
            preference=NotificationPreference(user_id=UserID(user_id)),
        )

    with ThreadPoolExecutor(max_workers=2) as pool:
        preference_future = pool.submit(get_notification_preferences, user_id, supabase)
        email_future = pool.submit(get_user_email, user_id, supabase)
        preference = preference_future.result()
        email = email_future.result()

    return PreferenceCheck(
        should_send=preference.allows(kind) and email is not None,
        email=email,
        preference=preference,
    )
