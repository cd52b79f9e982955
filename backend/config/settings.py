# Runtime settings for the notification and attachment services.
# Values come from the environment (optionally a .env file); every setting
# has a default except the Supabase credentials, which are read in shared/db.py.

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# Mail service endpoints, keyed by notification kind value
MAIL_ENDPOINTS = {
    "new_messages": "/send-new-message",
    "new_matches": "/send-new-match",
    "book_availability": "/send-book-available",
}
HEALTH_ENDPOINT = "/health"

TRANSPORT_CHOICES = ("http", "relay", "resend")

# Chat attachment limits
ALLOWED_ATTACHMENT_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/x-msvideo",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)
MAX_ATTACHMENT_SIZE = 50 * 1024 * 1024  # 50MB
MAX_ATTACHMENTS_PER_MESSAGE = 5


@dataclass(frozen=True)
class Settings:
    email_service_url: str
    transport: str
    timeout_seconds: float
    max_attempts: int
    retry_base_delay: float
    worker_count: int
    from_email: str
    frontend_base_url: str
    attachments_bucket: str
    signed_url_ttl_seconds: int


def get_settings() -> Settings:
    """Build settings from the current environment."""
    transport = os.getenv("NOTIFICATION_TRANSPORT", "http").lower()
    if transport not in TRANSPORT_CHOICES:
        raise ValueError(
            f"NOTIFICATION_TRANSPORT must be one of {', '.join(TRANSPORT_CHOICES)}, got {transport!r}"
        )

    return Settings(
        email_service_url=os.getenv(
            "EMAIL_SERVICE_URL", "http://localhost:5000/api/email"
        ).rstrip("/"),
        transport=transport,
        timeout_seconds=float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "8")),
        max_attempts=int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3")),
        retry_base_delay=float(os.getenv("NOTIFICATION_RETRY_BASE_DELAY", "0.5")),
        worker_count=int(os.getenv("NOTIFICATION_WORKERS", "4")),
        from_email=os.getenv("NOTIFICATION_FROM_EMAIL", "notifications@bookswap.example"),
        frontend_base_url=os.getenv("FRONTEND_BASE_URL", "http://localhost:8080").rstrip(
            "/"
        ),
        attachments_bucket=os.getenv("ATTACHMENTS_BUCKET", "chat-attachments"),
        signed_url_ttl_seconds=int(
            os.getenv("ATTACHMENT_URL_TTL_SECONDS", str(60 * 60 * 24 * 365))
        ),
    )
