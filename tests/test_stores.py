"""Unit tests for the FAQ and chat stores."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from datetime import datetime, timezone

import pytest
from unittest.mock import MagicMock, patch
from models.conversation import Sender
from services.faq_store import InMemoryFaqStore, SupabaseFaqStore, StoreError, parse_timestamp
from services.chat_store import InMemoryChatStore, SupabaseChatStore


class TestParseTimestamp:

    def test_short_microseconds(self):
        parsed = parse_timestamp("2026-02-21T02:08:26.18976+00:00")
        assert parsed.microsecond == 189760
        assert parsed.utcoffset().total_seconds() == 0

    def test_zulu_suffix(self):
        assert parse_timestamp("2026-02-21T02:08:26Z").year == 2026

    def test_long_microseconds(self):
        parsed = parse_timestamp("2026-02-21T02:08:26.123456789+00:00")
        assert parsed.microsecond == 123456


class TestInMemoryFaqStore:

    def test_create_and_find_all(self):
        store = InMemoryFaqStore()
        first = store.create("Refund Policy", "We refund within 30 days")
        second = store.create("Shipping", "Two days")

        assert [faq.id for faq in store.find_all()] == [first.id, second.id]
        assert first.id != second.id
        assert isinstance(first.created_at, datetime)


class TestSupabaseFaqStore:

    @patch('services.faq_store.create_client')
    def test_initialization_success(self, mock_create_client):
        store = SupabaseFaqStore(supabase_url="https://test.supabase.co", supabase_key="test_key")
        assert store.table_name == "faqs"
        mock_create_client.assert_called_once_with("https://test.supabase.co", "test_key")

    def test_initialization_without_credentials(self):
        with pytest.raises(ValueError, match="SUPABASE_URL and SUPABASE_KEY"):
            SupabaseFaqStore(supabase_url=None, supabase_key="test_key")

    @patch('services.faq_store.create_client')
    def test_find_all_maps_rows(self, mock_create_client):
        mock_client = MagicMock()
        mock_create_client.return_value = mock_client
        query = mock_client.table.return_value.select.return_value.order.return_value
        query.execute.return_value.data = [
            {"id": "a1", "title": "Refund Policy", "content": "30 days", "created_at": "2026-01-01T10:00:00.5+00:00"},
        ]

        store = SupabaseFaqStore(supabase_url="https://test.supabase.co", supabase_key="test_key")
        faqs = store.find_all()

        assert len(faqs) == 1
        assert faqs[0].id == "a1"
        assert faqs[0].title == "Refund Policy"
        mock_client.table.assert_called_with("faqs")

    @patch('services.faq_store.create_client')
    def test_find_all_failure_raises_store_error(self, mock_create_client):
        mock_client = MagicMock()
        mock_create_client.return_value = mock_client
        mock_client.table.return_value.select.return_value.order.return_value.execute.side_effect = Exception("down")

        store = SupabaseFaqStore(supabase_url="https://test.supabase.co", supabase_key="test_key")
        with pytest.raises(StoreError, match="Failed to fetch FAQs"):
            store.find_all()

    @patch('services.faq_store.create_client')
    def test_create_inserts_row(self, mock_create_client):
        mock_client = MagicMock()
        mock_create_client.return_value = mock_client

        store = SupabaseFaqStore(supabase_url="https://test.supabase.co", supabase_key="test_key")
        faq = store.create("Refund Policy", "30 days")

        row = mock_client.table.return_value.insert.call_args[0][0]
        assert row["id"] == faq.id
        assert row["title"] == "Refund Policy"
        assert row["content"] == "30 days"
        assert row["created_at"] == faq.created_at.isoformat()


class TestInMemoryChatStore:

    def test_unknown_user(self):
        assert InMemoryChatStore().find_by_user("nobody") is None

    def test_append_exchange_creates_record_lazily(self):
        store = InMemoryChatStore()
        store.append_exchange("u1", "hi", "hello!")
        store.append_exchange("u1", "refund?", "30 days.")

        record = store.find_by_user("u1")
        assert [t.sender for t in record.turns] == [Sender.USER, Sender.ASSISTANT] * 2
        assert [t.content for t in record.turns] == ["hi", "hello!", "refund?", "30 days."]
        assert record.updated_at == record.turns[-1].timestamp

    def test_records_are_per_user(self):
        store = InMemoryChatStore()
        store.append_exchange("u1", "a", "b")
        store.append_exchange("u2", "c", "d")
        assert len(store.find_by_user("u1").turns) == 2
        assert len(store.find_by_user("u2").turns) == 2

    def test_returned_record_is_a_copy(self):
        store = InMemoryChatStore()
        store.append_exchange("u1", "a", "b")
        store.find_by_user("u1").turns.clear()
        assert len(store.find_by_user("u1").turns) == 2

    def test_turns_are_strictly_time_ordered(self):
        store = InMemoryChatStore()
        store.append_exchange("u1", "hi", "hello!")
        store.append_exchange("u1", "refund?", "30 days.")

        timestamps = [t.timestamp for t in store.find_by_user("u1").turns]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:]))

    def test_reply_after_message_with_frozen_clock(self):
        frozen = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        with patch("services.chat_store.datetime") as mock_datetime:
            mock_datetime.now.return_value = frozen
            record = InMemoryChatStore().append_exchange("u1", "hi", "hello!")

        assert record.turns[0].timestamp == frozen
        assert record.turns[1].timestamp > frozen


class TestSupabaseChatStore:

    @pytest.fixture
    def mock_client(self):
        with patch('services.chat_store.create_client') as mock_create_client:
            client = MagicMock()
            mock_create_client.return_value = client
            yield client

    @pytest.fixture
    def store(self, mock_client):
        return SupabaseChatStore(supabase_url="https://test.supabase.co", supabase_key="test_key")

    def test_find_by_user_missing(self, store, mock_client):
        mock_client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        assert store.find_by_user("u1") is None

    def test_find_by_user_reads_legacy_sender(self, store, mock_client):
        mock_client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "user_id": "u1",
            "updated_at": "2026-01-01T10:00:01+00:00",
            "messages": [
                {"sender": "user", "content": "hi", "timestamp": "2026-01-01T10:00:00+00:00"},
                {"sender": "ai", "content": "hello", "timestamp": "2026-01-01T10:00:01+00:00"},
                {"sender": "system", "content": "ignored", "timestamp": "2026-01-01T10:00:02+00:00"},
            ],
        }]

        record = store.find_by_user("u1")

        assert [t.sender for t in record.turns] == [Sender.USER, Sender.ASSISTANT]
        mock_client.table.return_value.select.return_value.eq.assert_called_with("user_id", "u1")

    def test_append_exchange_upserts_all_turns(self, store, mock_client):
        mock_client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "user_id": "u1",
            "updated_at": None,
            "messages": [
                {"sender": "user", "content": "hi", "timestamp": "2026-01-01T10:00:00+00:00"},
                {"sender": "assistant", "content": "hello", "timestamp": "2026-01-01T10:00:01+00:00"},
            ],
        }]

        record = store.append_exchange("u1", "refund?", "30 days.")

        assert len(record.turns) == 4
        upsert = mock_client.table.return_value.upsert
        row = upsert.call_args[0][0]
        assert upsert.call_args[1]["on_conflict"] == "user_id"
        assert row["user_id"] == "u1"
        assert [m["sender"] for m in row["messages"]] == ["user", "assistant", "user", "assistant"]
        assert row["messages"][-1]["content"] == "30 days."

    def test_append_exchange_failure_raises_store_error(self, store, mock_client):
        mock_client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        mock_client.table.return_value.upsert.return_value.execute.side_effect = Exception("down")

        with pytest.raises(StoreError, match="Failed to save conversation"):
            store.append_exchange("u1", "hi", "hello")

    def test_find_by_user_skips_messages_with_bad_timestamps(self, store, mock_client):
        mock_client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "user_id": "u1",
            "updated_at": None,
            "messages": [
                {"sender": "user", "content": "no time"},
                {"sender": "user", "content": "bad time", "timestamp": "yesterday"},
                {"sender": "assistant", "content": "kept", "timestamp": "2026-01-01T10:00:01+00:00"},
            ],
        }]

        record = store.find_by_user("u1")

        assert [t.content for t in record.turns] == ["kept"]

    def test_find_by_user_bad_row_raises_store_error(self, store, mock_client):
        mock_client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "user_id": "u1",
            "updated_at": "not a timestamp",
            "messages": [],
        }]

        with pytest.raises(StoreError, match="Failed to decode conversation"):
            store.find_by_user("u1")
