"""
Unit tests for swaps/swap_service.py
"""

import unittest
from unittest.mock import patch

from models.notification import NotificationKind
from models.swap import SwapStatus
from swaps.swap_service import create_swap_request
from tests.fixtures.mock_helpers import create_mock_supabase, create_mock_supabase_tables
from tests.fixtures.user_factory import create_test_profile


def swap_row(**overrides):
    row = {
        "id": "swap-1",
        "requester_id": "user-b",
        "requester_name": "Bob",
        "book_id": "b1",
        "book_title": "Dune",
        "book_author": "Frank Herbert",
        "owner_id": "user-a",
        "owner_name": "Alice",
        "status": "pending",
        "message": "",
    }
    row.update(overrides)
    return row


@patch("swaps.swap_service.notify_best_effort")
class TestCreateSwapRequest(unittest.TestCase):
    """Tests for create_swap_request()."""

    def setUp(self):
        self.books = create_mock_supabase([{"title": "Dune", "author": "Frank Herbert"}])
        self.profiles = create_mock_supabase(
            [create_test_profile(user_id="user-a", display_name="Alice")]
        )
        self.swaps = create_mock_supabase([swap_row()])
        self.mock_supabase = create_mock_supabase_tables(
            {"books": self.books, "profiles": self.profiles, "swap_requests": self.swaps}
        )

    def test_creates_request_and_notifies_owner(self, mock_notify):
        request = create_swap_request(
            "user-b",
            "Bob",
            "b1",
            "user-a",
            message="Swap for Emma?",
            supabase=self.mock_supabase,
        )

        self.assertEqual(request.id, "swap-1")
        self.assertIs(request.status, SwapStatus.PENDING)
        row = self.swaps.insert.call_args[0][0]
        self.assertEqual(row["book_title"], "Dune")
        self.assertEqual(row["owner_name"], "Alice")
        self.assertEqual(row["message"], "Swap for Emma?")
        self.assertEqual(row["status"], "pending")
        mock_notify.assert_called_once_with(NotificationKind.NEW_MATCHES, "user-a")

    def test_own_book_rejected(self, mock_notify):
        with self.assertRaises(ValueError):
            create_swap_request("user-a", "Alice", "b1", "user-a", supabase=self.mock_supabase)
        self.swaps.insert.assert_not_called()

    def test_missing_book(self, mock_notify):
        self.books.execute.return_value.data = []

        with self.assertRaises(LookupError) as context:
            create_swap_request("user-b", "Bob", "ghost", "user-a", supabase=self.mock_supabase)

        self.assertIn("Book not found", str(context.exception))
        mock_notify.assert_not_called()

    def test_missing_owner(self, mock_notify):
        self.profiles.execute.return_value.data = []

        with self.assertRaises(LookupError) as context:
            create_swap_request("user-b", "Bob", "b1", "ghost", supabase=self.mock_supabase)

        self.assertIn("Owner not found", str(context.exception))


if __name__ == "__main__":
    unittest.main()
