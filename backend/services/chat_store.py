"""Conversation storage keyed by user id."""
import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from supabase import create_client, Client

from models.conversation import ConversationRecord, ConversationTurn, Sender
from services.faq_store import StoreError, parse_timestamp
from config import SUPABASE_URL, SUPABASE_KEY, CHAT_TABLE

logger = logging.getLogger(__name__)


class ChatStore(ABC):
    """Find-by-key and append operations on conversation records."""

    @abstractmethod
    def find_by_user(self, user_id: str) -> Optional[ConversationRecord]:
        """Return the user's conversation, or None if they never wrote."""

    @abstractmethod
    def append_exchange(self, user_id: str, message: str, reply: str) -> ConversationRecord:
        """
        Append a user turn followed by an assistant turn.

        Creates the record on first use. Concurrent exchanges for the same
        user are last-writer-wins.
        """


def _exchange_turns(message: str, reply: str) -> List[ConversationTurn]:
    sent_at = datetime.now(timezone.utc)
    # Reply must sort strictly after the message even on a coarse clock
    replied_at = max(datetime.now(timezone.utc), sent_at + timedelta(microseconds=1))
    return [
        ConversationTurn(sender=Sender.USER, content=message, timestamp=sent_at),
        ConversationTurn(sender=Sender.ASSISTANT, content=reply, timestamp=replied_at),
    ]


class InMemoryChatStore(ChatStore):
    """Process-local conversation store."""

    def __init__(self):
        self._records: Dict[str, ConversationRecord] = {}

    def find_by_user(self, user_id: str) -> Optional[ConversationRecord]:
        record = self._records.get(user_id)
        return copy.deepcopy(record) if record else None

    def append_exchange(self, user_id: str, message: str, reply: str) -> ConversationRecord:
        record = self._records.setdefault(user_id, ConversationRecord(user_id=user_id))
        turns = _exchange_turns(message, reply)
        record.turns.extend(turns)
        record.updated_at = turns[-1].timestamp
        return copy.deepcopy(record)


class SupabaseChatStore(ChatStore):
    """One row per user with the turns kept in a JSON column."""

    def __init__(
        self,
        supabase_url: str = SUPABASE_URL,
        supabase_key: str = SUPABASE_KEY,
        table_name: str = CHAT_TABLE
    ):
        """
        Initialize the chat store with a Supabase client.

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY environment variables are required")

        self.table_name = table_name
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"Initialized SupabaseChatStore with table: {table_name}")

    def find_by_user(self, user_id: str) -> Optional[ConversationRecord]:
        try:
            result = self.client.table(self.table_name).select("*").eq("user_id", user_id).execute()
        except Exception as e:
            error_msg = f"Failed to fetch conversation for {user_id}: {str(e)}"
            logger.error(error_msg)
            raise StoreError(error_msg) from e

        if not result.data:
            return None

        row = result.data[0]
        turns = []
        for message in row.get("messages") or []:
            sender = Sender.parse(message.get("sender", ""))
            if sender is None:
                logger.warning(f"Skipping message with unknown sender {message.get('sender')!r}")
                continue
            try:
                timestamp = parse_timestamp(message["timestamp"])
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning(f"Skipping message with bad timestamp {message.get('timestamp')!r}")
                continue
            turns.append(ConversationTurn(
                sender=sender,
                content=message.get("content", ""),
                timestamp=timestamp
            ))

        try:
            updated_at = row.get("updated_at")
            return ConversationRecord(
                user_id=row["user_id"],
                turns=turns,
                updated_at=parse_timestamp(updated_at) if updated_at else None
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            error_msg = f"Failed to decode conversation for {user_id}: {str(e)}"
            logger.error(error_msg)
            raise StoreError(error_msg) from e

    def append_exchange(self, user_id: str, message: str, reply: str) -> ConversationRecord:
        record = self.find_by_user(user_id) or ConversationRecord(user_id=user_id)
        turns = _exchange_turns(message, reply)
        record.turns.extend(turns)
        record.updated_at = turns[-1].timestamp

        try:
            self.client.table(self.table_name).upsert(
                {
                    "user_id": user_id,
                    "messages": [turn.to_dict() for turn in record.turns],
                    "updated_at": record.updated_at.isoformat()
                },
                on_conflict="user_id"
            ).execute()
        except Exception as e:
            error_msg = f"Failed to save conversation for {user_id}: {str(e)}"
            logger.error(error_msg)
            raise StoreError(error_msg) from e

        logger.info(f"Saved exchange for {user_id} ({len(record.turns)} turns)")
        return record
