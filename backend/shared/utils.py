from datetime import datetime


def mask_email(email: str | None) -> str:
    """Mask the local part of an address for console output: j***@example.com"""
    if not email or "@" not in email:
        return "<none>"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def print_summary(sent: int, skipped: int, failed: int) -> None:
    """Print notification processing summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Notification Processing Complete!")
    print(f"{'=' * 60}")
    print(f"✓ Sent: {sent}")
    print(f"⊘ Skipped: {skipped}")
    print(f"✗ Failed: {failed}")
    print(f"{'=' * 60}\n")
