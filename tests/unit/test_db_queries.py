"""Unit tests for chat store sessions and conversation queries."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from chat_archive.db import (
    Chat,
    Conversation,
    conversation_exists,
    get_session,
    list_conversations,
)
from chat_archive.db.queries import conversation_name
from chat_archive.exceptions import DatabaseNotFoundError, SchemaVersionError


class TestGetSession:
    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(DatabaseNotFoundError):
            with get_session(temp_dir / "missing.db"):
                pass

    def test_missing_tables(self, temp_dir: Path) -> None:
        db_path = temp_dir / "other.db"
        conn = sqlite3.connect(db_path)
        conn.execute("CREATE TABLE message (ROWID INTEGER PRIMARY KEY, text TEXT)")
        conn.close()

        with pytest.raises(SchemaVersionError) as excinfo:
            with get_session(db_path):
                pass
        assert "chat_message_join" in str(excinfo.value)

    def test_opens_read_only(self, sample_chat_db: Path) -> None:
        with get_session(sample_chat_db) as session:
            with pytest.raises(OperationalError, match="readonly"):
                session.execute(text("DELETE FROM message"))

        conn = sqlite3.connect(sample_chat_db)
        assert conn.execute("SELECT count(*) FROM message").fetchone()[0] == 9
        conn.close()

    def test_orm_lookup(self, sample_chat_db: Path) -> None:
        with get_session(sample_chat_db) as session:
            chat = session.get(Chat, 3)
            assert chat is not None
            assert chat.display_name == "Book club"


class TestConversationName:
    def test_display_name_wins(self) -> None:
        assert conversation_name("Book club", "+14155550100") == "Book club"

    def test_empty_display_name_uses_handle(self) -> None:
        assert conversation_name("", "alice@example.com") == "alice@example.com"

    def test_phone_reduced_to_digits(self) -> None:
        assert conversation_name(None, "+1 (415) 555-0100") == "14155550100"

    def test_phone_like_display_name_reduced(self) -> None:
        assert conversation_name("+44 20 7123 4567", None) == "442071234567"

    def test_no_name(self) -> None:
        assert conversation_name(None, None) is None


class TestListConversations:
    def test_most_recent_first(self, sample_chat_db: Path) -> None:
        with get_session(sample_chat_db) as session:
            conversations = list_conversations(session)
        assert [c.id for c in conversations] == ["4", "3", "2", "1"]

    def test_summaries(self, sample_chat_db: Path) -> None:
        with get_session(sample_chat_db) as session:
            conversations = {c.id: c for c in list_conversations(session)}

        assert conversations["1"] == Conversation(
            id="1",
            name="14155550100",
            last_message="Sure, dinner at 8",
            last_message_date=1704909900,
            participant_count=1,
        )
        assert conversations["2"].name == "alice@example.com"
        assert conversations["2"].last_message is None
        assert conversations["3"].name == "Book club"
        assert conversations["3"].participant_count == 2
        assert conversations["3"].is_group is True
        assert conversations["4"].name == "bob@example.org"
        assert conversations["4"].is_group is False

    def test_limit(self, sample_chat_db: Path) -> None:
        with get_session(sample_chat_db) as session:
            conversations = list_conversations(session, limit=2)
        assert [c.id for c in conversations] == ["4", "3"]

    def test_empty_conversation_sorted_last(self, sample_chat_db: Path) -> None:
        conn = sqlite3.connect(sample_chat_db)
        conn.execute(
            "INSERT INTO chat (ROWID, guid, style, chat_identifier, display_name) "
            "VALUES (5, 'iMessage;-;new', 45, 'new', 'Nobody yet')"
        )
        conn.commit()
        conn.close()

        with get_session(sample_chat_db) as session:
            conversations = list_conversations(session)
        assert conversations[-1].id == "5"
        assert conversations[-1].last_message_date == 0
        assert conversations[-1].participant_count == 0

    def test_to_dict(self) -> None:
        conversation = Conversation(
            id="7",
            name="Book club",
            last_message="hi",
            last_message_date=1704067200,
            participant_count=3,
        )
        assert conversation.to_dict() == {
            "id": "7",
            "name": "Book club",
            "last_message": "hi",
            "last_message_date": 1704067200,
            "participant_count": 3,
        }


class TestConversationExists:
    def test_exists(self, sample_chat_db: Path) -> None:
        with get_session(sample_chat_db) as session:
            assert conversation_exists(session, 1) is True
            assert conversation_exists(session, 99) is False
