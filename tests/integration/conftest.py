"""Integration test fixtures: the sample store plus a busy group conversation."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from chat_archive.db import get_session

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlalchemy.orm import Session

# ---------------------------------------------------------------------------
# Busy conversation definition
# ---------------------------------------------------------------------------

BUSY_CHAT_ID = 10

# 2024-06-01T00:00:00Z in store nanoseconds
BUSY_START = (1717200000 - 978307200) * 1_000_000_000

BUSY_MESSAGES = 250

# Messages 1000 and 1001 share a timestamp so rowid decides their order
TIED_IDS = (1000, 1001)


def _add_busy_chat(db_path: Path) -> None:
    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO handle (ROWID, id, service, uncanonicalized_id) "
        "VALUES (5, 'carol@example.net', 'iMessage', NULL)"
    )
    conn.execute(
        "INSERT INTO chat (ROWID, guid, style, chat_identifier, display_name) "
        "VALUES (?, 'iMessage;+;chat777', 43, 'chat777', 'Weekend plans')",
        (BUSY_CHAT_ID,),
    )
    conn.executemany(
        "INSERT INTO chat_handle_join (chat_id, handle_id) VALUES (?, ?)",
        [(BUSY_CHAT_ID, 1), (BUSY_CHAT_ID, 2), (BUSY_CHAT_ID, 5)],
    )

    rows = []
    for n in range(BUSY_MESSAGES):
        rowid = 100 + n
        handle_id = (1, 2, 5, None)[n % 4]
        text = f"plan {n}" if n % 10 else f"pizza night {n}"
        date = BUSY_START + n * 60_000_000_000
        rows.append((rowid, text, handle_id, date, int(handle_id is None)))
    for rowid in TIED_IDS:
        rows.append((rowid, "same minute", 5, BUSY_START - 60_000_000_000, 0))

    for rowid, text, handle_id, date, is_from_me in rows:
        conn.execute(
            "INSERT INTO message (ROWID, guid, text, handle_id, date, is_from_me) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (rowid, f"busy-{rowid}", text, handle_id, date, is_from_me),
        )
        conn.execute(
            "INSERT INTO chat_message_join (chat_id, message_id) VALUES (?, ?)",
            (BUSY_CHAT_ID, rowid),
        )
    conn.commit()
    conn.close()


@pytest.fixture
def archive_db(sample_chat_db: Path) -> Path:
    """Sample store with an extra group conversation of 252 messages."""
    _add_busy_chat(sample_chat_db)
    return sample_chat_db


@pytest.fixture
def archive_session(archive_db: Path) -> Generator[Session, None, None]:
    """Read-only session on the archive store."""
    with get_session(archive_db) as session:
        yield session
