"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import sqlite3
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Generator

APPLE_EPOCH = 978307200


def store_time(value: str) -> int:
    """Store nanoseconds for an ISO date-time in UTC."""
    unix = int(datetime.fromisoformat(value).replace(tzinfo=timezone.utc).timestamp())
    return (unix - APPLE_EPOCH) * 1_000_000_000


CHAT_SCHEMA = """
    CREATE TABLE handle (
        ROWID INTEGER PRIMARY KEY AUTOINCREMENT UNIQUE,
        id TEXT NOT NULL,
        country TEXT,
        service TEXT NOT NULL,
        uncanonicalized_id TEXT,
        person_centric_id TEXT
    );

    CREATE TABLE message (
        ROWID INTEGER PRIMARY KEY AUTOINCREMENT,
        guid TEXT UNIQUE NOT NULL,
        text TEXT,
        handle_id INTEGER DEFAULT 0,
        service TEXT,
        date INTEGER,
        date_read INTEGER,
        is_from_me INTEGER DEFAULT 0,
        cache_has_attachments INTEGER DEFAULT 0
    );

    CREATE TABLE chat (
        ROWID INTEGER PRIMARY KEY AUTOINCREMENT,
        guid TEXT UNIQUE NOT NULL,
        style INTEGER,
        chat_identifier TEXT,
        service_name TEXT,
        display_name TEXT
    );

    CREATE TABLE chat_message_join (
        chat_id INTEGER REFERENCES chat (ROWID) ON DELETE CASCADE,
        message_id INTEGER REFERENCES message (ROWID) ON DELETE CASCADE,
        message_date INTEGER DEFAULT 0,
        PRIMARY KEY (chat_id, message_id)
    );

    CREATE TABLE chat_handle_join (
        chat_id INTEGER REFERENCES chat (ROWID) ON DELETE CASCADE,
        handle_id INTEGER REFERENCES handle (ROWID) ON DELETE CASCADE,
        UNIQUE (chat_id, handle_id)
    );

    CREATE TABLE attachment (
        ROWID INTEGER PRIMARY KEY AUTOINCREMENT,
        guid TEXT UNIQUE NOT NULL,
        filename TEXT,
        mime_type TEXT,
        transfer_name TEXT,
        total_bytes INTEGER DEFAULT 0
    );

    CREATE TABLE message_attachment_join (
        message_id INTEGER REFERENCES message (ROWID) ON DELETE CASCADE,
        attachment_id INTEGER REFERENCES attachment (ROWID) ON DELETE CASCADE,
        UNIQUE (message_id, attachment_id)
    );
"""

# (ROWID, id, uncanonicalized_id)
HANDLES = [
    (1, "+14155550100", "(415) 555-0100"),
    (2, "alice@example.com", None),
    (3, "+442071234567", None),
    (4, "bob@example.org", "Bob@Example.org"),
]

# (ROWID, chat_identifier, display_name, style, handle ids)
CHATS = [
    (1, "+14155550100", "", 45, [1]),
    (2, "alice@example.com", None, 45, [2]),
    (3, "chat900001", "Book club", 43, [1, 3]),
    (4, "bob@example.org", None, 45, [4]),
]

# (ROWID, text, handle_id, date, is_from_me, chat_id)
MESSAGES = [
    (1, "Late dinner?", 1, "2024-01-01T23:59:59", 0, 1),
    (2, "Dinner tonight?", 1, "2024-01-10T18:00:00", 0, 1),
    (3, "Sure, dinner at 8", None, "2024-01-10T18:05:00", 1, 1),
    (4, "Photos from the trip", 2, "2024-02-01T12:00:00", 0, 2),
    (5, None, 2, "2024-02-01T12:01:00", 0, 2),
    (6, "Next book: Dune", 3, "2024-03-05T09:00:00", 0, 3),
    (7, "I loved it", 1, "2024-03-05T09:30:00", 0, 3),
    (8, "See you at book club", None, "2024-03-06T10:00:00", 1, 3),
    (9, "Lunch on Friday?", 4, "2024-04-02T12:00:00", 0, 4),
]

# (ROWID, filename, transfer_name, message_id)
ATTACHMENTS = [
    (1, "~/Library/Messages/Attachments/aa/IMG_0001.jpeg", "IMG_0001.jpeg", 4),
    (2, "~/Library/Messages/Attachments/ab/IMG_0002.heic", None, 5),
]


def build_chat_db(db_path: Path) -> Path:
    """Create a small chat database at ``db_path``."""
    conn = sqlite3.connect(db_path)
    conn.executescript(CHAT_SCHEMA)

    conn.executemany(
        "INSERT INTO handle (ROWID, id, service, uncanonicalized_id) VALUES (?, ?, ?, ?)",
        [(rowid, hid, "iMessage", uncanon) for rowid, hid, uncanon in HANDLES],
    )
    for rowid, identifier, display_name, style, handle_ids in CHATS:
        conn.execute(
            "INSERT INTO chat (ROWID, guid, style, chat_identifier, display_name) "
            "VALUES (?, ?, ?, ?, ?)",
            (rowid, f"iMessage;-;{identifier}", style, identifier, display_name),
        )
        conn.executemany(
            "INSERT INTO chat_handle_join (chat_id, handle_id) VALUES (?, ?)",
            [(rowid, handle_id) for handle_id in handle_ids],
        )
    for rowid, text, handle_id, date, is_from_me, chat_id in MESSAGES:
        conn.execute(
            "INSERT INTO message (ROWID, guid, text, handle_id, date, is_from_me) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (rowid, f"msg-{rowid}", text, handle_id, store_time(date), is_from_me),
        )
        conn.execute(
            "INSERT INTO chat_message_join (chat_id, message_id) VALUES (?, ?)",
            (chat_id, rowid),
        )
    for rowid, filename, transfer_name, message_id in ATTACHMENTS:
        conn.execute(
            "INSERT INTO attachment (ROWID, guid, filename, transfer_name) VALUES (?, ?, ?, ?)",
            (rowid, f"att-{rowid}", filename, transfer_name),
        )
        conn.execute(
            "INSERT INTO message_attachment_join (message_id, attachment_id) VALUES (?, ?)",
            (message_id, rowid),
        )
        conn.execute("UPDATE message SET cache_has_attachments = 1 WHERE ROWID = ?", (message_id,))

    conn.commit()
    conn.close()
    return db_path


def build_contacts_db(db_path: Path) -> Path:
    """Create a small AddressBook database at ``db_path``."""
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE ZABCDRECORD (
            Z_PK INTEGER PRIMARY KEY,
            ZFIRSTNAME VARCHAR,
            ZLASTNAME VARCHAR,
            ZNICKNAME VARCHAR,
            ZORGANIZATION VARCHAR
        );
        CREATE TABLE ZABCDEMAILADDRESS (
            Z_PK INTEGER PRIMARY KEY,
            ZOWNER INTEGER,
            ZADDRESS VARCHAR
        );
        CREATE TABLE ZABCDPHONENUMBER (
            Z_PK INTEGER PRIMARY KEY,
            ZOWNER INTEGER,
            ZFULLNUMBER VARCHAR
        );

        INSERT INTO ZABCDRECORD VALUES (1, 'Jane', 'Doe', NULL, NULL);
        INSERT INTO ZABCDRECORD VALUES (2, 'Alice', 'Liddell', 'Ali', NULL);
        INSERT INTO ZABCDRECORD VALUES (3, NULL, NULL, NULL, 'Acme Corp');
        INSERT INTO ZABCDRECORD VALUES (4, NULL, NULL, NULL, NULL);

        INSERT INTO ZABCDPHONENUMBER VALUES (1, 1, '+1 (415) 555-0100');
        INSERT INTO ZABCDPHONENUMBER VALUES (2, 3, '020 7123 4567');
        INSERT INTO ZABCDPHONENUMBER VALUES (3, 3, NULL);

        INSERT INTO ZABCDEMAILADDRESS VALUES (1, 2, 'Alice@Example.com');
        INSERT INTO ZABCDEMAILADDRESS VALUES (2, 4, 'ghost@example.com');
    """)
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_chat_db(temp_dir: Path) -> Path:
    """A chat database with four conversations and nine messages."""
    return build_chat_db(temp_dir / "chat.db")


@pytest.fixture
def sample_contacts_db(temp_dir: Path) -> Path:
    """An AddressBook database matching some of the chat handles."""
    return build_contacts_db(temp_dir / "AddressBook-v22.abcddb")


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""[paths]
chat_db = "/tmp/test_chat.db"
contacts_db = "/tmp/test_contacts.db"

[search]
limit = 50
default_sort = "asc"

[display]
colored_output = true
""")
    return config_path


@pytest.fixture
def archive_config(temp_dir: Path, sample_chat_db: Path, sample_contacts_db: Path) -> Path:
    """A config file pointing at the sample databases."""
    config_path = temp_dir / "archive.toml"
    config_path.write_text(f"""[paths]
chat_db = "{sample_chat_db}"
contacts_db = "{sample_contacts_db}"

[display]
colored_output = false
""")
    return config_path
