"""
Notification dispatch: one policy for every notification the app sends.

A dispatch resolves the recipient's preference and email, skips quietly when
the recipient opted out or has no address, validates the address, and then
delivers through the configured transport with bounded retries.

    Created -> PreferenceChecked -> Skipped
                                 -> EmailInvalid
                                 -> Attempting -> Delivered
                                               -> ExhaustedRetries

Priority.HIGH only skips the preference gate. There is no fallback
recipient: a notification goes to the recipient's own address or nowhere.
"""

import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from config.settings import Settings, get_settings
from models.notification import (
    DispatchOutcome,
    NotificationJob,
    NotificationKind,
    Priority,
)
from models.types import UserID
from notifications.delivery import deliver_with_retry
from notifications.error_logger import log_notification_error
from notifications.preferences import get_user_email, should_send_notification
from notifications.transports import MailTransport, get_transport
from shared.utils import mask_email

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class DispatchResult:
    outcome: DispatchOutcome
    attempts: int = 0
    error: Optional[str] = None
    email: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.outcome is DispatchOutcome.DELIVERED


def is_valid_email(email: Optional[str]) -> bool:
    """Basic structural check: local part, '@', domain containing a dot."""
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def run_dispatch(
    job: NotificationJob,
    supabase: Optional[Any] = None,
    transport: Optional[MailTransport] = None,
    settings: Optional[Settings] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> DispatchResult:
    """
    Run one notification job to a terminal state.

    Args:
        job: Kind, recipient and priority to dispatch
        supabase: Optional client for preference/email lookups
        transport: Optional transport (defaults to the configured one)
        settings: Optional settings (defaults to get_settings())
        sleep: Optional wait function used between retries

    Returns:
        DispatchResult with the terminal outcome and attempts made
    """
    kind = job.kind
    user_id = job.recipient_user_id
    started = time.monotonic()

    # Preference gate
    if job.priority is Priority.HIGH:
        email = get_user_email(user_id, supabase)
        should_send = email is not None
    else:
        check = should_send_notification(user_id, kind, supabase)
        email = check.email
        should_send = check.should_send

    if not should_send:
        reason = "no email address" if email is None else f"{kind.value} disabled"
        print(f"  ⊘ Skipping {kind.value} for user {user_id}: {reason}")
        return DispatchResult(outcome=DispatchOutcome.SKIPPED, email=email)

    if not is_valid_email(email):
        print(f"  ✗ Invalid email format for user {user_id}: {mask_email(email)}")
        log_notification_error(
            error_type="dispatch",
            error_message="Invalid email format",
            context={"user_id": user_id, "kind": kind.value},
        )
        return DispatchResult(outcome=DispatchOutcome.EMAIL_INVALID, email=email)

    settings = settings or get_settings()
    transport = transport or get_transport(settings, supabase)

    result = deliver_with_retry(
        transport,
        kind,
        email,
        user_id,
        max_attempts=settings.max_attempts,
        base_delay=settings.retry_base_delay,
        sleep=sleep,
    )
    duration_ms = int((time.monotonic() - started) * 1000)

    if result.delivered:
        print(
            f"  ✓ {kind.value} notification delivered to user {user_id} in {duration_ms}ms"
        )
        return DispatchResult(
            outcome=DispatchOutcome.DELIVERED, attempts=result.attempts, email=email
        )

    error_file = log_notification_error(
        error_type="sending",
        error_message=result.error or "Unknown error",
        context={
            "user_id": user_id,
            "kind": kind.value,
            "transport": transport.name,
            "attempts": result.attempts,
            "duration_ms": duration_ms,
        },
    )
    print(f"    Error details logged to: {error_file}")
    return DispatchResult(
        outcome=DispatchOutcome.EXHAUSTED_RETRIES,
        attempts=result.attempts,
        error=result.error,
        email=email,
    )


def dispatch(
    kind: NotificationKind,
    recipient_user_id: str,
    priority: Priority = Priority.NORMAL,
    **kwargs: Any,
) -> bool:
    """
    Send one notification and report whether it was delivered.

    Never raises: any unexpected error is logged and reported as not
    delivered.

    Args:
        kind: Notification kind
        recipient_user_id: Recipient profile ID
        priority: HIGH skips the preference gate
        **kwargs: Passed through to run_dispatch (supabase, transport, settings, sleep)

    Returns:
        True if delivered, False if skipped, invalid or failed
    """
    job = NotificationJob(
        kind=kind, recipient_user_id=UserID(recipient_user_id), priority=priority
    )
    try:
        return run_dispatch(job, **kwargs).delivered
    except Exception as e:
        error_file = log_notification_error(
            error_type="dispatch",
            error_message=str(e),
            context={"user_id": recipient_user_id, "kind": kind.value},
        )
        print(f"  ⚠️  Error dispatching {kind.value}. Details logged to: {error_file}")
        return False
