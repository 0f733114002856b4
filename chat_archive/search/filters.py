"""Normalize search input into comparison-ready filters."""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import Union

from chat_archive.search.diagnostics import Diagnostics
from chat_archive.search.parser import SearchParams, parse_text
from chat_archive.utils.phones import PHONE_SUFFIX_DIGITS, digits_only, is_phone_like
from chat_archive.utils.timestamps import (
    end_of_day,
    fits_store_int,
    parse_calendar_date,
    start_of_day,
    unix_to_store,
)

log = logging.getLogger(__name__)

_CONVERSATION_ID = re.compile(r"[0-9]+")


class ConversationKind(enum.Enum):
    ANY = "all"
    DIRECT = "direct"
    GROUP = "group"


class SortOrder(enum.Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class PhoneDigits:
    """Phone number reduced to its digits; matched by suffix."""

    digits: str

    @property
    def suffix(self) -> str:
        return self.digits[-PHONE_SUFFIX_DIGITS:]


@dataclass(frozen=True)
class Email:
    """Email address; matched exactly, ignoring case."""

    address: str


@dataclass(frozen=True)
class RawIdentifier:
    """Anything else; matched as a substring of the stored identifier."""

    value: str


SenderMatcher = Union[PhoneDigits, Email, RawIdentifier]


def classify_sender(raw: str) -> SenderMatcher:
    """Classify a user-supplied sender value.

    Precedence: phone number, then email, then raw identifier.

    Examples:
        >>> classify_sender("+1 (415) 555-0100")
        PhoneDigits(digits='14155550100')
        >>> classify_sender("Alice@Example.com")
        Email(address='alice@example.com')
    """
    value = raw.strip()
    if is_phone_like(value):
        return PhoneDigits(digits=digits_only(value))
    if "@" in value:
        return Email(address=value.lower())
    return RawIdentifier(value=value)


@dataclass
class SearchFilters:
    """Normalized search filters.

    ``after`` and ``before`` are store timestamps (nanoseconds since
    2001-01-01 UTC).  ``after > before`` is allowed and matches nothing.
    ``conversation_id_invalid`` marks a conversation filter that could
    not be parsed; such a search must return no rows.
    """

    text_pattern: str | None = None
    after: int | None = None
    before: int | None = None
    senders: tuple[SenderMatcher, ...] = ()
    conversation_id: int | None = None
    conversation_id_invalid: bool = False
    only_from_me: bool = False
    only_with_attachment: bool = False
    conversation_kind: ConversationKind = ConversationKind.ANY
    sort: SortOrder = SortOrder.DESCENDING

    @property
    def fail_closed(self) -> bool:
        return self.conversation_id_invalid


@dataclass
class SenderCounts:
    """How many matchers of each kind a sender list holds."""

    phones: int = 0
    emails: int = 0
    identifiers: int = 0

    def add(self, matcher: SenderMatcher) -> SenderCounts:
        return SenderCounts(
            phones=self.phones + isinstance(matcher, PhoneDigits),
            emails=self.emails + isinstance(matcher, Email),
            identifiers=self.identifiers + isinstance(matcher, RawIdentifier),
        )


def count_senders(senders: Iterable[SenderMatcher]) -> SenderCounts:
    counts = SenderCounts()
    for matcher in senders:
        counts = counts.add(matcher)
    return counts


def _text_pattern(text: str) -> str | None:
    # Wildcards typed by the user are passed through unescaped
    text = text.strip()
    if not text:
        return None
    return f"%{text}%"


def _resolve_date(
    candidates: list[tuple[str, str | None]],
    to_unix: Callable[[date], int],
    diagnostics: Diagnostics,
) -> int | None:
    """Return the store time of the first candidate that parses."""
    for source, raw in candidates:
        if raw is None or not raw.strip():
            continue
        try:
            day = parse_calendar_date(raw)
        except ValueError:
            diagnostics.add(
                "normalize", "invalid-date", f"Ignoring unparseable {source} date", raw
            )
            continue
        store_time = unix_to_store(to_unix(day))
        if not fits_store_int(store_time):
            diagnostics.add(
                "normalize", "invalid-date", f"Ignoring out of range {source} date", raw
            )
            continue
        return store_time
    return None


def _collect_senders(params: SearchParams, directive_senders: list[str]) -> list[str]:
    raw: list[str] = []
    for contact in params.contacts:
        values = [*contact.phones, *contact.emails]
        if not values and contact.contact_id:
            values = [contact.contact_id]
        raw.extend(values)
    raw.extend(directive_senders)
    return [value for value in raw if value.strip()]


def parse_conversation_id(value: str) -> int | None:
    """Parse a conversation id; only non-negative 64-bit integers are valid."""
    value = value.strip()
    if _CONVERSATION_ID.fullmatch(value):
        conversation_id = int(value)
        if fits_store_int(conversation_id):
            return conversation_id
    return None


def _enum_value(enum_cls, raw: str, default, name: str, diagnostics: Diagnostics):
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        diagnostics.add(
            "normalize", f"invalid-{name}", f"Unknown {name}, using {default.value}", raw
        )
        return default


def normalize(params: SearchParams, diagnostics: Diagnostics | None = None) -> SearchFilters:
    """Turn structured params (and any directives in their text) into filters.

    Structured fields are applied first; directives in ``params.query``
    override the single-valued ones and add to the sender list.

    Args:
        params: The search request.
        diagnostics: Collector for skipped or adjusted input.

    Returns:
        Normalized filters, fresh for this call.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    parsed = parse_text(params.query, diagnostics)

    after = _resolve_date(
        [("AFTER:", v) for v in reversed(parsed.after)] + [("start", params.start_date)],
        start_of_day,
        diagnostics,
    )
    before = _resolve_date(
        [("BEFORE:", v) for v in reversed(parsed.before)] + [("end", params.end_date)],
        end_of_day,
        diagnostics,
    )

    # Ordered set: first occurrence wins
    senders = tuple(
        dict.fromkeys(classify_sender(s) for s in _collect_senders(params, parsed.senders))
    )

    conversation_id: int | None = None
    conversation_id_invalid = False
    raw_conversation = parsed.conversation_id
    if raw_conversation is None and params.conversation_id and params.conversation_id.strip():
        raw_conversation = params.conversation_id
    if raw_conversation is not None:
        conversation_id = parse_conversation_id(raw_conversation)
        if conversation_id is None:
            conversation_id_invalid = True
            diagnostics.add(
                "normalize",
                "invalid-conversation",
                "Conversation id is not a valid id, search returns no results",
                raw_conversation,
            )

    filters = SearchFilters(
        text_pattern=_text_pattern(parsed.text),
        after=after,
        before=before,
        senders=senders,
        conversation_id=conversation_id,
        conversation_id_invalid=conversation_id_invalid,
        only_from_me=params.only_my_messages,
        only_with_attachment=params.only_with_attachments,
        conversation_kind=_enum_value(
            ConversationKind,
            params.conversation_type,
            ConversationKind.ANY,
            "conversation-type",
            diagnostics,
        ),
        sort=_enum_value(
            SortOrder, params.sort_direction, SortOrder.DESCENDING, "sort-direction", diagnostics
        ),
    )
    counts = count_senders(filters.senders)
    log.debug(
        "Normalized filters: text=%r after=%r before=%r senders=%d phone/%d email/%d other",
        filters.text_pattern,
        filters.after,
        filters.before,
        counts.phones,
        counts.emails,
        counts.identifiers,
    )
    return filters
