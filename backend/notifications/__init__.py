"""
Notification system for the book swap backend.

This module handles:
- Checking recipient preferences and email addresses
- Dispatching new-message, new-match and book-availability emails
- Retrying delivery with exponential backoff over one configured transport
- Persisting jobs in a queue processed by a bounded worker pool
"""

from .dispatcher import dispatch, run_dispatch
from .notification_queue import NotificationQueue, notify_best_effort

__all__ = [
    'dispatch',
    'run_dispatch',
    'NotificationQueue',
    'notify_best_effort',
]
