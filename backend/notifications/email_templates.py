"""
Email content for swap notifications.

Used by the transports that compose the message themselves (mail relay and
Resend); the HTTP mail service renders its own templates.
"""

import html
from dataclasses import dataclass
from typing import Optional

from models.notification import NotificationKind

APP_NAME = "Book Swap"


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


_HEADLINES = {
    NotificationKind.NEW_MESSAGES: (
        "New Message",
        "You have a new book swap message.",
        "/chat",
    ),
    NotificationKind.NEW_MATCHES: (
        "New Book Match",
        "Someone would like to swap one of your books.",
        "/matches",
    ),
    NotificationKind.BOOK_AVAILABILITY: (
        "Book Available",
        "A book on your wishlist has just been listed.",
        "/books",
    ),
}


def build_notification_email(
    kind: NotificationKind,
    frontend_base_url: str,
    unsubscribe_url: Optional[str] = None,
) -> EmailContent:
    """
    Build subject, plain text and HTML bodies for one notification.

    Args:
        kind: Notification kind
        frontend_base_url: Base URL for links back into the app
        unsubscribe_url: One-click link that turns this kind off (optional)

    Returns:
        EmailContent ready for sending
    """
    title, message, path = _HEADLINES[kind]
    action_url = f"{frontend_base_url}{path}"
    preferences_url = f"{frontend_base_url}/profile"

    subject = f"{title} - {APP_NAME}"

    text = f"""{title.upper()}

{message}

Open {APP_NAME}: {action_url}

Manage your notification preferences: {preferences_url}
"""
    if unsubscribe_url:
        text += f"Stop these emails: {unsubscribe_url}\n"

    unsubscribe_html = ""
    if unsubscribe_url:
        unsubscribe_html = (
            f' &bull; <a href="{html.escape(unsubscribe_url)}">Stop these emails</a>'
        )

    body = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(subject)}</title>
</head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #436B95;">{APP_NAME}</h2>
    <p style="font-size: 16px; line-height: 1.6;">{html.escape(message)}</p>
    <p><a href="{html.escape(action_url)}" style="color: #436B95; font-weight: 600;">Open {APP_NAME} &rarr;</a></p>
    <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">
    <p style="font-size: 12px; color: #666;">
        This is an automated notification from {APP_NAME}. Happy reading!
        <br>
        <a href="{html.escape(preferences_url)}">Manage your notification preferences</a>{unsubscribe_html}
    </p>
</body>
</html>
"""

    return EmailContent(subject=subject, text=text, html=body)
