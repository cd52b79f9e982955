"""
Durable notification queue with a bounded worker pool.

Every job is written to the notification_jobs table as `pending` before a
worker picks it up, and marked `sent`, `skipped` or `failed` when its
dispatch ends. Jobs still `pending` after a crash are picked up again by
process_notification_queue.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

from config.settings import get_settings
from models.notification import (
    DispatchOutcome,
    JobStatus,
    NotificationJob,
    NotificationKind,
    Priority,
)
from models.types import JobID, UserID
from notifications.dispatcher import run_dispatch
from notifications.error_logger import log_notification_error
from shared.db import NOTIFICATION_JOBS_TABLE, SERVER_TIMESTAMP, get_supabase_client


class NotificationQueue:
    """Persists notification jobs and dispatches them on a thread pool."""

    def __init__(self, supabase: Optional[Any] = None, max_workers: Optional[int] = None):
        self._supabase = supabase
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or get_settings().worker_count,
            thread_name_prefix="notification-worker",
        )

    def _client(self) -> Any:
        if self._supabase is None:
            self._supabase = get_supabase_client()
        return self._supabase

    def enqueue(
        self,
        kind: NotificationKind,
        recipient_user_id: str,
        priority: Priority = Priority.NORMAL,
    ) -> "Future[DispatchOutcome]":
        """
        Persist a job and hand it to the worker pool.

        Raises:
            Exception: Store errors from the insert propagate; see notify_best_effort
        """
        job = NotificationJob(
            kind=kind, recipient_user_id=UserID(recipient_user_id), priority=priority
        )
        response = (
            self._client().table(NOTIFICATION_JOBS_TABLE).insert(job.to_row()).execute()
        )
        if response.data:
            job = job.model_copy(update={"id": JobID(str(response.data[0]["id"]))})

        print(f"  📥 Queued {kind.value} for user {recipient_user_id} (job {job.id})")
        return self.submit(job)

    def submit(self, job: NotificationJob) -> "Future[DispatchOutcome]":
        """Dispatch an already-persisted (or unpersisted) job on the pool."""
        return self._executor.submit(self.process_job, job)

    def process_job(self, job: NotificationJob) -> DispatchOutcome:
        """Run one job to completion and record its final status. Never raises."""
        try:
            result = run_dispatch(job, supabase=self._supabase)
        except Exception as e:
            error_file = log_notification_error(
                error_type="dispatch",
                error_message=str(e),
                context={
                    "job_id": job.id,
                    "user_id": job.recipient_user_id,
                    "kind": job.kind.value,
                },
            )
            print(f"  ✗ Job {job.id} crashed. Details logged to: {error_file}")
            self._finish(job, JobStatus.FAILED, 0, str(e))
            return DispatchOutcome.EXHAUSTED_RETRIES

        error = result.error
        if result.outcome in (DispatchOutcome.SKIPPED, DispatchOutcome.EMAIL_INVALID):
            error = result.outcome.value
        self._finish(job, result.outcome.job_status, result.attempts, error)
        return result.outcome

    def _finish(
        self, job: NotificationJob, status: JobStatus, attempts: int, error: Optional[str]
    ) -> None:
        if job.id is None:
            return

        update: dict[str, Any] = {
            "status": status.value,
            "attempts": job.attempts + attempts,
            "error_message": error,
        }
        if status is JobStatus.SENT:
            update["sent_at"] = SERVER_TIMESTAMP
        self._record(job.id, update)

    def _record(self, job_id: str, update: dict[str, Any]) -> None:
        try:
            self._client().table(NOTIFICATION_JOBS_TABLE).update(update).eq(
                "id", job_id
            ).execute()
        except Exception as e:
            log_notification_error(
                error_type="queuing",
                error_message=f"Could not record job status: {e}",
                context={"job_id": job_id, "status": update["status"]},
            )

    def get_pending_jobs(self, limit: Optional[int] = None) -> list[NotificationJob]:
        """
        Jobs left pending, oldest first.

        Rows that cannot be read as a job (unknown kind, missing recipient)
        are logged, marked failed and left out; the rest are still returned.
        """
        query = (
            self._client()
            .table(NOTIFICATION_JOBS_TABLE)
            .select("*")
            .eq("status", JobStatus.PENDING.value)
            .order("created_at", desc=False)
        )
        if limit:
            query = query.limit(limit)
        response = query.execute()

        jobs: list[NotificationJob] = []
        for row in response.data or []:
            try:
                jobs.append(NotificationJob.from_row(row))
            except (ValueError, KeyError, TypeError) as e:
                self._reject_row(row, e)
        return jobs

    def _reject_row(self, row: dict[str, Any], error: Exception) -> None:
        job_id = row.get("id")
        error_file = log_notification_error(
            error_type="queuing",
            error_message=f"Unreadable pending job: {error!r}",
            context={"job_id": job_id, "row": row},
        )
        print(f"  ✗ Skipping unreadable job {job_id}. Details logged to: {error_file}")
        if job_id is not None:
            self._record(
                str(job_id),
                {
                    "status": JobStatus.FAILED.value,
                    "error_message": f"Unreadable job: {error}",
                },
            )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_default_queue: Optional[NotificationQueue] = None
_default_queue_lock = threading.Lock()


def get_notification_queue() -> NotificationQueue:
    """Shared queue for the process, created on first use."""
    global _default_queue
    with _default_queue_lock:
        if _default_queue is None:
            _default_queue = NotificationQueue()
        return _default_queue


def notify_best_effort(
    kind: NotificationKind,
    recipient_user_id: str,
    priority: Priority = Priority.NORMAL,
    queue: Optional[NotificationQueue] = None,
) -> bool:
    """
    Queue a notification on behalf of a primary action. Never raises.

    If the job cannot be persisted it is still dispatched in memory so a
    store hiccup does not drop it outright.

    Returns:
        True if the job was persisted and queued, False otherwise
    """
    try:
        queue = queue or get_notification_queue()
    except Exception as e:
        log_notification_error(
            error_type="queuing",
            error_message=str(e),
            context={"user_id": recipient_user_id, "kind": kind.value},
        )
        print(f"  ⚠️  Notification queue unavailable, {kind.value} not sent")
        return False

    try:
        queue.enqueue(kind, recipient_user_id, priority)
        return True
    except Exception as e:
        error_file = log_notification_error(
            error_type="queuing",
            error_message=str(e),
            context={"user_id": recipient_user_id, "kind": kind.value},
        )
        print(
            f"  ⚠️  Could not persist {kind.value} job, dispatching in memory. "
            f"Details logged to: {error_file}"
        )

    try:
        queue.submit(
            NotificationJob(
                kind=kind, recipient_user_id=UserID(recipient_user_id), priority=priority
            )
        )
    except RuntimeError as e:
        # Pool already shut down
        log_notification_error(
            error_type="queuing",
            error_message=str(e),
            context={"user_id": recipient_user_id, "kind": kind.value},
        )
    return False
