"""
Token generation and validation for one-click unsubscribe links.

Each token is signed, expires after 90 days and names one notification kind,
so a link in a new-message email only turns off new-message emails.
"""

import os
import hashlib
from typing import Any, Optional
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from models.notification import NotificationKind

UNSUBSCRIBE_SALT = "unsubscribe"
DEFAULT_MAX_AGE_DAYS = 90


def _get_serializer() -> URLSafeTimedSerializer:
    """
    Get configured serializer for token generation and validation.

    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY environment variable not set
    """
    secret_key = os.getenv("UNSUBSCRIBE_SECRET_KEY")
    if not secret_key:
        raise ValueError("UNSUBSCRIBE_SECRET_KEY environment variable must be set.")

    return URLSafeTimedSerializer(
        secret_key,
        salt=UNSUBSCRIBE_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_unsubscribe_token(user_id: str, kind: NotificationKind) -> str:
    """
    Generate a signed token that disables one notification kind for a user.

    Args:
        user_id: Profile ID
        kind: Notification kind the link turns off

    Returns:
        URL-safe token string (format: payload.timestamp.signature)

    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY not configured
    """
    return _get_serializer().dumps({"user_id": user_id, "kind": kind.value})


def validate_unsubscribe_token(
    token: str, max_age_days: int = DEFAULT_MAX_AGE_DAYS
) -> Optional[tuple[str, NotificationKind]]:
    """
    Validate an unsubscribe token.

    Never raises - returns None for any invalid, expired or malformed token.

    Returns:
        (user_id, kind) if the token is valid, otherwise None
    """
    try:
        payload = _get_serializer().loads(token, max_age=max_age_days * 24 * 60 * 60)
        return payload["user_id"], NotificationKind(payload["kind"])
    except (BadSignature, SignatureExpired, ValueError, TypeError, KeyError):
        return None


def apply_unsubscribe_token(token: str, supabase: Optional[Any] = None) -> bool:
    """
    Turn off the notification kind named by a token.

    Returns:
        True if the preference was updated, False for an invalid token
    """
    validated = validate_unsubscribe_token(token)
    if validated is None:
        return False

    from profiles.profile_service import update_notification_preferences

    user_id, kind = validated
    update_notification_preferences(user_id, {kind: False}, supabase=supabase)
    print(f"  ✓ Unsubscribed user {user_id} from {kind.value}")
    return True
