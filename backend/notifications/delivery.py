"""
Retry policy shared by every mail transport.

Up to `max_attempts` attempts; after a failed attempt (timeout, network
error, non-2xx, or a {success: false} reply) wait
base_delay * 2 ** (attempt - 1) seconds before the next one.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from models.notification import NotificationKind
from notifications.transports import DeliveryError, MailTransport
from shared.utils import mask_email


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool
    attempts: int
    error: Optional[str] = None


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay after the given (1-based) failed attempt."""
    return base_delay * 2 ** (attempt - 1)


def deliver_with_retry(
    transport: MailTransport,
    kind: NotificationKind,
    email: str,
    user_id: str,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    sleep: Optional[Callable[[float], None]] = None,
) -> DeliveryResult:
    """
    Deliver one notification, retrying with exponential backoff.

    Args:
        transport: Transport performing each attempt
        kind: Notification kind
        email: Validated recipient address
        user_id: Recipient profile ID (for unsubscribe links and logs)
        max_attempts: Total attempts before giving up
        base_delay: Seconds to wait after the first failed attempt
        sleep: Wait function (defaults to time.sleep)

    Returns:
        DeliveryResult with the number of attempts made and the last error
    """
    sleep = sleep or time.sleep
    masked = mask_email(email)
    last_error: Optional[str] = None

    for attempt in range(1, max_attempts + 1):
        print(
            f"  📧 Attempt {attempt}/{max_attempts}: {kind.value} to {masked} via {transport.name}"
        )
        try:
            confirmation = transport.deliver(kind, email, user_id)
        except DeliveryError as e:
            last_error = str(e)
            print(f"  ⚠️  Attempt {attempt} failed: {e}")
            if attempt < max_attempts:
                delay = backoff_delay(attempt, base_delay)
                print(f"  ⏳ Waiting {delay:.1f}s before retry...")
                sleep(delay)
            continue

        print(f"  ✓ Delivered on attempt {attempt}: {confirmation}")
        return DeliveryResult(delivered=True, attempts=attempt)

    print(f"  ✗ All {max_attempts} attempts failed for {masked}")
    return DeliveryResult(delivered=False, attempts=max_attempts, error=last_error)
