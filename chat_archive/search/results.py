"""Map store rows to message records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from chat_archive.search.diagnostics import Diagnostics
from chat_archive.utils.timestamps import store_to_unix

if TYPE_CHECKING:
    from chat_archive.contacts import ContactDirectory

log = logging.getLogger(__name__)

# Shown for messages whose text column is NULL
PLACEHOLDER_TEXT = "[Attachment or empty message]"


@dataclass(frozen=True)
class MessageRecord:
    """A message as returned to callers.

    Attributes:
        id: Message row id.
        text: Message text, or a placeholder when the store has none.
        date: Unix seconds; 0 when the store has no date.
        is_from_me: True if I sent the message.
        conversation_id: Id of the conversation the message belongs to.
        sender: Display label of the sender; None for my own messages.
        attachment: Name of the first attachment, if any.
    """

    id: int
    text: str
    date: int
    is_from_me: bool
    conversation_id: str | None = None
    sender: str | None = None
    attachment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RowDecodeError(ValueError):
    """A store row has a column that cannot be decoded."""


def _as_int(value: Any, name: str, default: int | None = None) -> int:
    if value is None:
        if default is None:
            raise RowDecodeError(f"{name} is NULL")
        return default
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise RowDecodeError(f"{name} is not an integer: {value!r}")


def sender_label(
    sender_id: str,
    directory: ContactDirectory | None = None,
    short_email: bool = False,
) -> str:
    """Label for a sender identifier.

    A contact name from ``directory`` wins; otherwise emails may be
    shortened to their local part and anything else is shown as stored.
    """
    if directory is not None:
        name = directory.resolve(sender_id)
        if name:
            return name
    if short_email and "@" in sender_id:
        return sender_id.split("@", 1)[0]
    return sender_id


def map_row(
    row: Mapping[str, Any],
    *,
    directory: ContactDirectory | None = None,
    short_email_senders: bool = False,
) -> MessageRecord:
    """Convert one row of :func:`~chat_archive.db.queries.message_select`.

    Raises:
        RowDecodeError: If a column holds a value of the wrong type.
        KeyError: If a required column is missing.
    """
    message_id = _as_int(row["message_id"], "message_id")

    text = row["text"]
    if text is None:
        text = PLACEHOLDER_TEXT
    elif not isinstance(text, str):
        raise RowDecodeError(f"text is not a string: {type(text).__name__}")

    raw_date = row["date"]
    date = 0 if raw_date is None else store_to_unix(_as_int(raw_date, "date"))

    is_from_me = _as_int(row["is_from_me"], "is_from_me", default=0) == 1

    chat_id = row["chat_id"]
    conversation_id = None if chat_id is None else str(chat_id)

    sender = None
    sender_id = row["sender_id"]
    if not is_from_me and sender_id:
        sender = sender_label(str(sender_id), directory, short_email_senders)

    attachment = row.get("attachment")

    return MessageRecord(
        id=message_id,
        text=text,
        date=date,
        is_from_me=is_from_me,
        conversation_id=conversation_id,
        sender=sender,
        attachment=None if attachment is None else str(attachment),
    )


def map_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    directory: ContactDirectory | None = None,
    diagnostics: Diagnostics | None = None,
    short_email_senders: bool = False,
) -> list[MessageRecord]:
    """Map rows in order, skipping the ones that fail to decode."""
    if diagnostics is None:
        diagnostics = Diagnostics()

    records = []
    for row in rows:
        try:
            records.append(
                map_row(row, directory=directory, short_email_senders=short_email_senders)
            )
        except (RowDecodeError, KeyError, TypeError) as e:
            row_id = row.get("message_id") if isinstance(row, Mapping) else None
            log.warning("Skipping message row %s: %s", row_id, e)
            diagnostics.add(
                "map",
                "row-decode",
                f"Skipped a message that could not be decoded ({e})",
                None if row_id is None else str(row_id),
            )
    return records


@dataclass
class SearchOutcome:
    """Messages found by a search plus what the pipeline skipped."""

    messages: list[MessageRecord] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def count(self) -> int:
        return len(self.messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "total_count": self.count,
            "diagnostics": [asdict(d) for d in self.diagnostics],
        }
