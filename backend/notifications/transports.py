"""
Delivery transports for notification emails.

Each transport performs exactly one delivery attempt and raises
DeliveryError when it fails; retries and backoff live in
notifications.delivery so every transport follows the same policy.
"""

import os
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests
import resend

from config.settings import HEALTH_ENDPOINT, MAIL_ENDPOINTS, Settings, get_settings
from models.notification import NotificationKind
from notifications.email_templates import EmailContent, build_notification_email
from notifications.unsubscribe_tokens import generate_unsubscribe_token
from shared.db import MAIL_TABLE, SERVER_TIMESTAMP, get_supabase_client

# Initialize Resend with API key from environment
resend.api_key = os.getenv("RESEND_API_KEY")


class DeliveryError(Exception):
    """One delivery attempt failed (timeout, network, HTTP or service error)."""


class MailTransport(ABC):
    """Base transport: delivers one notification email per call."""

    name = "base"

    @abstractmethod
    def deliver(self, kind: NotificationKind, email: str, user_id: str) -> str:
        """
        Attempt delivery once.

        Returns:
            Short confirmation (service message or provider email id)

        Raises:
            DeliveryError: If the attempt failed
        """
        pass


class HttpMailTransport(MailTransport):
    """Mail service with one POST endpoint per notification kind."""

    name = "http"

    def __init__(self, base_url: str, timeout: float):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def endpoint_for(self, kind: NotificationKind) -> str:
        return f"{self.base_url}{MAIL_ENDPOINTS[kind.value]}"

    def deliver(self, kind: NotificationKind, email: str, user_id: str) -> str:
        try:
            response = requests.post(
                self.endpoint_for(kind),
                json={"email": email},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as e:
            raise DeliveryError(f"Timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise DeliveryError(str(e)) from e
        except ValueError as e:
            raise DeliveryError(f"Invalid JSON from mail service: {e}") from e

        if not isinstance(data, dict):
            raise DeliveryError("Unexpected response from mail service")
        if not data.get("success"):
            raise DeliveryError(
                data.get("error") or data.get("message") or "Mail service reported failure"
            )

        return str(data.get("message", "sent"))

    def check_health(self) -> bool:
        """True if the mail service answers its health endpoint with 2xx."""
        try:
            response = requests.get(f"{self.base_url}{HEALTH_ENDPOINT}", timeout=5)
        except requests.RequestException as e:
            print(f"  ✗ Mail service health check failed: {e}")
            return False
        return response.ok


def _compose(kind: NotificationKind, user_id: str, settings: Settings) -> EmailContent:
    unsubscribe_url = None
    if os.getenv("UNSUBSCRIBE_SECRET_KEY"):
        token = generate_unsubscribe_token(user_id, kind)
        unsubscribe_url = f"{settings.frontend_base_url}/unsubscribe?token={token}"
    return build_notification_email(kind, settings.frontend_base_url, unsubscribe_url)


class MailRelayTransport(MailTransport):
    """
    Writes a "to send" row into the mail table; an external relay sends it.

    Success means the row was written, not that the email left the relay.
    """

    name = "relay"

    def __init__(self, settings: Settings, supabase: Optional[Any] = None):
        self.settings = settings
        self.supabase = supabase

    def deliver(self, kind: NotificationKind, email: str, user_id: str) -> str:
        content = _compose(kind, user_id, self.settings)
        try:
            supabase = self.supabase or get_supabase_client()
            response = (
                supabase.table(MAIL_TABLE)
                .insert(
                    {
                        "to": [email],
                        "message": {
                            "subject": content.subject,
                            "text": content.text,
                            "html": content.html,
                        },
                        "delivery": {"start_time": SERVER_TIMESTAMP},
                    }
                )
                .execute()
            )
        except Exception as e:
            raise DeliveryError(f"Could not queue mail row: {e}") from e

        rows = response.data or []
        return f"queued mail row {rows[0].get('id')}" if rows else "queued mail row"


class ResendTransport(MailTransport):
    """Sends directly through the Resend API."""

    name = "resend"

    def __init__(self, settings: Settings):
        self.settings = settings

    def deliver(self, kind: NotificationKind, email: str, user_id: str) -> str:
        content = _compose(kind, user_id, self.settings)
        params: dict[str, Any] = {
            "from": f"Book Swap <{self.settings.from_email}>",
            "to": email,
            "subject": content.subject,
            "html": content.html,
            "text": content.text,
        }
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            raise DeliveryError(str(e)) from e

        return str(response.get("id", "sent"))


def get_transport(
    settings: Optional[Settings] = None, supabase: Optional[Any] = None
) -> MailTransport:
    """Select the configured transport (NOTIFICATION_TRANSPORT)."""
    settings = settings or get_settings()

    if settings.transport == "relay":
        return MailRelayTransport(settings, supabase)
    if settings.transport == "resend":
        return ResendTransport(settings)
    return HttpMailTransport(settings.email_service_url, settings.timeout_seconds)
