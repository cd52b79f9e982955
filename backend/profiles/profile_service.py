"""
Profile reads and updates.

A profile's neighborhood is copied onto every book and wanted book the user
owns. Changing it goes through one Postgres function so the profile and all
of its books change together; a failed cascade is retried as a whole.
"""

import time
from typing import Any, Callable, Mapping, Optional

from postgrest.exceptions import APIError

from models.notification import NotificationKind, NotificationPreference
from models.profile import Profile, ProfileUpdate
from shared.db import PROFILES_TABLE, SERVER_TIMESTAMP, get_supabase_client

CASCADE_FUNCTION = "cascade_profile_neighborhood"
CASCADE_MAX_ATTEMPTS = 3
CASCADE_RETRY_DELAY = 0.5


class ProfileNotFoundError(LookupError):
    pass


def get_profile(user_id: str, supabase: Optional[Any] = None) -> Optional[Profile]:
    """Fetch a profile, or None if it does not exist."""
    supabase = supabase or get_supabase_client()
    response = (
        supabase.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1).execute()
    )
    if not response.data:
        return None
    return Profile.from_row(response.data[0])


def cascade_neighborhood(
    user_id: str,
    neighborhood: str,
    supabase: Optional[Any] = None,
    max_attempts: int = CASCADE_MAX_ATTEMPTS,
    sleep: Optional[Callable[[float], None]] = None,
) -> int:
    """
    Set a user's neighborhood on their profile and every book they own.

    The whole batch runs in one transaction on the database side. Transient
    failures (network, timeout) re-run the whole batch; a rejection from the
    database (APIError) is raised immediately.

    Args:
        user_id: Profile ID
        neighborhood: New neighborhood
        supabase: Optional client
        max_attempts: Attempts before the last error is raised
        sleep: Wait function between attempts (defaults to time.sleep)

    Returns:
        Number of book rows updated

    Raises:
        APIError: If the database rejects the update
        Exception: The last transient error once attempts are exhausted
    """
    supabase = supabase or get_supabase_client()
    sleep = sleep or time.sleep
    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            response = supabase.rpc(
                CASCADE_FUNCTION,
                {"p_user_id": user_id, "p_neighborhood": neighborhood},
            ).execute()
        except APIError:
            raise
        except Exception as e:
            last_error = e
            print(
                f"  ⚠️  Neighborhood update attempt {attempt}/{max_attempts} failed for user {user_id}: {e}"
            )
            if attempt < max_attempts:
                sleep(CASCADE_RETRY_DELAY * 2 ** (attempt - 1))
            continue

        updated = int(response.data or 0)
        print(f"  ✓ Neighborhood set to {neighborhood!r} on {updated} books for user {user_id}")
        return updated

    raise last_error or RuntimeError("cascade_neighborhood needs at least one attempt")


def update_profile(
    user_id: str,
    changes: ProfileUpdate | Mapping[str, Any],
    supabase: Optional[Any] = None,
) -> Profile:
    """
    Apply profile edits. A neighborhood change cascades to the user's books.

    Args:
        user_id: Profile ID
        changes: Fields to change (unset fields are untouched)
        supabase: Optional client

    Returns:
        The updated profile

    Raises:
        pydantic.ValidationError: If the changes are invalid
        ProfileNotFoundError: If the profile does not exist
    """
    if not isinstance(changes, ProfileUpdate):
        changes = ProfileUpdate.model_validate(dict(changes))

    supabase = supabase or get_supabase_client()
    update = changes.model_dump(exclude_unset=True)
    neighborhood = update.pop("neighborhood", None)

    if update:
        response = (
            supabase.table(PROFILES_TABLE)
            .update({**update, "updated_at": SERVER_TIMESTAMP})
            .eq("id", user_id)
            .execute()
        )
        if not response.data:
            raise ProfileNotFoundError(f"Profile {user_id} not found")

    if neighborhood:
        cascade_neighborhood(user_id, neighborhood, supabase)

    profile = get_profile(user_id, supabase)
    if profile is None:
        raise ProfileNotFoundError(f"Profile {user_id} not found")
    return profile


def update_notification_preferences(
    user_id: str,
    changes: Mapping[NotificationKind | str, bool],
    supabase: Optional[Any] = None,
) -> NotificationPreference:
    """
    Merge opt-in flags into a profile's email_notifications settings.

    Raises:
        ValueError: If a key is not a notification kind
        ProfileNotFoundError: If the profile does not exist
    """
    supabase = supabase or get_supabase_client()
    profile = get_profile(user_id, supabase)
    if profile is None:
        raise ProfileNotFoundError(f"Profile {user_id} not found")

    settings = profile.notification_preferences.to_settings()
    for key, enabled in changes.items():
        settings[NotificationKind(key).value] = bool(enabled)

    supabase.table(PROFILES_TABLE).update(
        {"email_notifications": settings, "updated_at": SERVER_TIMESTAMP}
    ).eq("id", user_id).execute()

    return NotificationPreference.from_settings(user_id, settings)
