from supabase import create_client, Client
from dotenv import load_dotenv
import os

load_dotenv()

# Table names
BOOKS_TABLE = "books"
WANTED_BOOKS_TABLE = "wanted_books"
PROFILES_TABLE = "profiles"
CHATS_TABLE = "chats"
MESSAGES_TABLE = "messages"
SWAP_REQUESTS_TABLE = "swap_requests"
NOTIFICATION_JOBS_TABLE = "notification_jobs"
MAIL_TABLE = "mail"

# Postgres resolves this timestamp literal to the transaction time
SERVER_TIMESTAMP = "now"


def get_supabase_client() -> Client:
    """Get initialized Supabase client."""
    url: str | None = os.getenv("SUPABASE_URL")
    key: str | None = os.getenv("SUPABASE_SERVICE_KEY")

    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

    return create_client(url, key)
