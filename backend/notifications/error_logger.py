"""
Error logging utility for notification system.

Every notification failure that is swallowed (so the triggering action can
still succeed) is written to a timestamped report file for debugging.
"""

import os
import uuid
from datetime import datetime
from typing import Any


def _log_dir() -> str:
    return os.getenv("NOTIFICATION_LOG_DIR") or os.path.join(
        os.path.dirname(__file__), "logs"
    )


def log_notification_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Log a notification error to a timestamped file.

    Args:
        error_type: Type of error ('preferences', 'sending', 'queuing', 'dispatch')
        error_message: The error message
        context: Optional dictionary with additional context (kind, user_id, job_id, etc.)

    Returns:
        Path to the log file created
    """
    log_dir = _log_dir()
    os.makedirs(log_dir, exist_ok=True)

    # Workers can fail within the same second; the suffix keeps reports apart
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = os.path.join(
        log_dir, f"notification_{error_type}_{timestamp}_{uuid.uuid4().hex[:6]}.txt"
    )

    with open(filename, "w", encoding="utf-8") as f:
        f.write(f"Notification Error Report - {datetime.now()}\n")
        f.write("=" * 60 + "\n\n")
        f.write(f"Error Type: {error_type}\n")
        f.write(f"Error Message: {error_message}\n\n")

        if context:
            f.write("Context:\n")
            f.write("-" * 60 + "\n")
            for key, value in context.items():
                f.write(f"{key}: {value}\n")

    return filename
