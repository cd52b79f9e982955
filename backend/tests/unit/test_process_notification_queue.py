"""
Unit tests for notifications/process_notification_queue.py

Tests re-dispatching pending jobs and the CLI health check.
"""

import os
import tempfile
import unittest
from unittest.mock import Mock, patch

from models.notification import DispatchOutcome, NotificationJob
from notifications.dispatcher import DispatchResult
from notifications.notification_queue import NotificationQueue
from notifications.process_notification_queue import main, process_pending_jobs
from tests.fixtures.mock_helpers import create_mock_supabase
from tests.fixtures.user_factory import create_test_job


def _jobs(count):
    return [NotificationJob.from_row(create_test_job(job_id=f"j{i}")) for i in range(count)]


@patch("notifications.process_notification_queue.time.sleep")
class TestProcessPendingJobs(unittest.TestCase):
    """Tests for process_pending_jobs()."""

    def test_no_pending_jobs(self, mock_sleep):
        queue = Mock()
        queue.get_pending_jobs.return_value = []

        stats = process_pending_jobs(queue=queue)

        self.assertEqual(stats, {"sent": 0, "failed": 0, "skipped": 0})
        queue.process_job.assert_not_called()

    def test_counts_outcomes(self, mock_sleep):
        queue = Mock()
        queue.get_pending_jobs.return_value = _jobs(4)
        queue.process_job.side_effect = [
            DispatchOutcome.DELIVERED,
            DispatchOutcome.SKIPPED,
            DispatchOutcome.EXHAUSTED_RETRIES,
            DispatchOutcome.EMAIL_INVALID,
        ]

        stats = process_pending_jobs(queue=queue)

        self.assertEqual(stats, {"sent": 1, "failed": 1, "skipped": 2})
        self.assertEqual(queue.process_job.call_count, 4)
        self.assertEqual(mock_sleep.call_count, 4)

    def test_limit_passed_through(self, mock_sleep):
        queue = Mock()
        queue.get_pending_jobs.return_value = []

        process_pending_jobs(limit=25, queue=queue)

        queue.get_pending_jobs.assert_called_once_with(25)

    def test_dry_run_sends_nothing(self, mock_sleep):
        queue = Mock()
        queue.get_pending_jobs.return_value = _jobs(2)

        stats = process_pending_jobs(dry_run=True, queue=queue)

        self.assertEqual(stats["sent"], 2)
        queue.process_job.assert_not_called()


@patch("notifications.process_notification_queue.time.sleep")
@patch("notifications.notification_queue.run_dispatch")
class TestRecoveryWithUnreadableRows(unittest.TestCase):
    """A bad pending row does not stop the rest of the run."""

    def setUp(self):
        self.log_dir = tempfile.TemporaryDirectory()
        self.env = patch.dict(os.environ, {"NOTIFICATION_LOG_DIR": self.log_dir.name})
        self.env.start()
        self.mock_supabase = create_mock_supabase(
            [
                create_test_job(job_id="old", kind="legacy_kind"),
                create_test_job(job_id="j1", recipient_user_id="user-1"),
            ]
        )
        self.queue = NotificationQueue(supabase=self.mock_supabase, max_workers=1)

    def tearDown(self):
        self.queue.shutdown()
        self.env.stop()
        self.log_dir.cleanup()

    def test_valid_job_still_dispatched(self, mock_run, mock_sleep):
        mock_run.return_value = DispatchResult(outcome=DispatchOutcome.DELIVERED, attempts=1)

        stats = process_pending_jobs(queue=self.queue)

        self.assertEqual(stats, {"sent": 1, "failed": 0, "skipped": 0})
        mock_run.assert_called_once()
        self.assertEqual(mock_run.call_args[0][0].id, "j1")
        statuses = [c[0][0]["status"] for c in self.mock_supabase.update.call_args_list]
        self.assertEqual(statuses, ["failed", "sent"])


class TestMain(unittest.TestCase):
    """Tests for the CLI entry point."""

    @patch("notifications.process_notification_queue.HttpMailTransport.check_health")
    def test_check_health_ok(self, mock_health):
        mock_health.return_value = True

        with patch("sys.argv", ["process_notification_queue", "--check-health"]):
            with self.assertRaises(SystemExit) as context:
                main()

        self.assertEqual(context.exception.code, 0)

    @patch("notifications.process_notification_queue.HttpMailTransport.check_health")
    def test_check_health_failing(self, mock_health):
        mock_health.return_value = False

        with patch("sys.argv", ["process_notification_queue", "--check-health"]):
            with self.assertRaises(SystemExit) as context:
                main()

        self.assertEqual(context.exception.code, 1)

    @patch("notifications.process_notification_queue.process_pending_jobs")
    def test_arguments(self, mock_process):
        with patch(
            "sys.argv", ["process_notification_queue", "--limit", "5", "--dry-run"]
        ):
            main()

        mock_process.assert_called_once_with(limit=5, dry_run=True)


if __name__ == "__main__":
    unittest.main()
