"""FAQ storage backed by Supabase, with an in-memory variant for local runs."""
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional
from supabase import create_client, Client

from models.faq import FaqEntry
from config import SUPABASE_URL, SUPABASE_KEY, FAQ_TABLE

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the document store cannot be read or written."""


def parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse timestamp string from Supabase, handling various formats.

    Supabase can return timestamps with varying microsecond precision,
    which Python's fromisoformat() can't always handle.

    Args:
        timestamp_str: Timestamp string from Supabase

    Returns:
        datetime object
    """
    timestamp_str = timestamp_str.replace("Z", "+00:00")

    # Format: 2026-02-21T02:08:26.18976+00:00
    if "." in timestamp_str:
        head, tail = timestamp_str.split(".", 1)
        for sign in ("+", "-"):
            if sign in tail:
                fraction, tz = tail.split(sign, 1)
                fraction = fraction[:6].ljust(6, "0")
                return datetime.fromisoformat(f"{head}.{fraction}{sign}{tz}")
        return datetime.fromisoformat(f"{head}.{tail[:6].ljust(6, '0')}")

    return datetime.fromisoformat(timestamp_str)


def new_faq(title: str, content: str) -> FaqEntry:
    return FaqEntry(
        id=uuid.uuid4().hex,
        title=title,
        content=content,
        created_at=datetime.now(timezone.utc)
    )


class FaqStore(ABC):
    """Find-all and create operations on FAQ entries."""

    @abstractmethod
    def find_all(self) -> List[FaqEntry]:
        """Return every FAQ entry in creation order."""

    @abstractmethod
    def create(self, title: str, content: str) -> FaqEntry:
        """Persist a new FAQ entry and return it."""


class InMemoryFaqStore(FaqStore):
    """Process-local FAQ store."""

    def __init__(self, entries: Optional[List[FaqEntry]] = None):
        self._entries: List[FaqEntry] = list(entries or [])

    def find_all(self) -> List[FaqEntry]:
        return list(self._entries)

    def create(self, title: str, content: str) -> FaqEntry:
        faq = new_faq(title, content)
        self._entries.append(faq)
        return faq


class SupabaseFaqStore(FaqStore):
    """FAQ entries stored as rows in a Supabase table."""

    def __init__(
        self,
        supabase_url: str = SUPABASE_URL,
        supabase_key: str = SUPABASE_KEY,
        table_name: str = FAQ_TABLE
    ):
        """
        Initialize the FAQ store with a Supabase client.

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY environment variables are required")

        self.table_name = table_name
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"Initialized SupabaseFaqStore with table: {table_name}")

    def find_all(self) -> List[FaqEntry]:
        try:
            result = self.client.table(self.table_name).select("*").order("created_at", desc=False).execute()
        except Exception as e:
            error_msg = f"Failed to fetch FAQs: {str(e)}"
            logger.error(error_msg)
            raise StoreError(error_msg) from e

        rows = result.data or []
        return [
            FaqEntry(
                id=str(row["id"]),
                title=row["title"],
                content=row["content"],
                created_at=parse_timestamp(row["created_at"])
            )
            for row in rows
        ]

    def create(self, title: str, content: str) -> FaqEntry:
        faq = new_faq(title, content)
        try:
            self.client.table(self.table_name).insert({
                "id": faq.id,
                "title": faq.title,
                "content": faq.content,
                "created_at": faq.created_at.isoformat()
            }).execute()
        except Exception as e:
            error_msg = f"Failed to save FAQ '{title}': {str(e)}"
            logger.error(error_msg)
            raise StoreError(error_msg) from e

        logger.info(f"Saved FAQ {faq.id}: {title}")
        return faq
