"""
CLI script for re-dispatching notification jobs left pending.

Jobs are persisted before dispatch, so anything still `pending` was never
finished (worker crash, deploy restart). This picks them up again.

Usage:
    # Re-dispatch every pending job
    uv run python -m notifications.process_notification_queue

    # Only the oldest 50
    uv run python -m notifications.process_notification_queue --limit 50

    # Dry run (list jobs without sending)
    uv run python -m notifications.process_notification_queue --dry-run

    # Check the mail service is reachable
    uv run python -m notifications.process_notification_queue --check-health
"""

import argparse
import time
from typing import Optional

from config.settings import get_settings
from models.notification import DispatchOutcome
from notifications.notification_queue import NotificationQueue
from notifications.transports import HttpMailTransport
from shared.utils import print_summary


def process_pending_jobs(
    limit: Optional[int] = None,
    dry_run: bool = False,
    queue: Optional[NotificationQueue] = None,
) -> dict[str, int]:
    """
    Dispatch pending jobs one at a time, oldest first.

    Args:
        limit: Maximum number of jobs to process
        dry_run: If True, list jobs but don't send anything
        queue: Optional queue (defaults to a single-worker queue)

    Returns:
        Dictionary with stats: sent, failed, skipped
    """
    queue = queue or NotificationQueue(max_workers=1)
    jobs = queue.get_pending_jobs(limit)

    if not jobs:
        print("No pending notification jobs.")
        return {"sent": 0, "failed": 0, "skipped": 0}

    print(f"Found {len(jobs)} pending notification jobs")
    stats = {"sent": 0, "failed": 0, "skipped": 0}

    for job in jobs:
        print(f"\nJob {job.id}: {job.kind.value} for user {job.recipient_user_id}")

        if dry_run:
            print(f"  [DRY RUN] Would dispatch job {job.id}")
            stats["sent"] += 1
            continue

        outcome = queue.process_job(job)
        if outcome is DispatchOutcome.DELIVERED:
            stats["sent"] += 1
        elif outcome is DispatchOutcome.EXHAUSTED_RETRIES:
            stats["failed"] += 1
        else:
            stats["skipped"] += 1

        # Rate limiting: max 10 jobs/second
        time.sleep(0.1)

    print_summary(stats["sent"], stats["skipped"], stats["failed"])
    return stats


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Re-dispatch notification jobs left pending"
    )

    parser.add_argument(
        "--limit", type=int, help="Maximum number of pending jobs to process"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't actually send emails)",
    )

    parser.add_argument(
        "--check-health",
        action="store_true",
        help="Only check that the mail service answers its health endpoint",
    )

    args = parser.parse_args()

    if args.check_health:
        settings = get_settings()
        transport = HttpMailTransport(settings.email_service_url, settings.timeout_seconds)
        healthy = transport.check_health()
        print("✓ Mail service is healthy" if healthy else "✗ Mail service is unhealthy")
        raise SystemExit(0 if healthy else 1)

    process_pending_jobs(limit=args.limit, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
