"""Extract directives from search text and describe structured search input."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from chat_archive.search.diagnostics import Diagnostics
from chat_archive.search.tokenizer import tokenize
from chat_archive.search.tokens import Directive, FreeText, Token

log = logging.getLogger(__name__)

AFTER = "AFTER"
BEFORE = "BEFORE"
FROM = "FROM"
CONVERSATION = "CONVERSATION"

# Recognized directive keys, matched case-sensitively as "KEY:" prefixes
DIRECTIVE_KEYS: tuple[str, ...] = (AFTER, BEFORE, FROM, CONVERSATION)


def strip_quotes(value: str) -> str:
    """Remove one pair of matching surrounding double quotes."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def classify_segment(token: FreeText) -> FreeText | Directive:
    """Turn a segment into a ``Directive`` when it starts with a known key."""
    for key in DIRECTIVE_KEYS:
        prefix = f"{key}:"
        if token.value.startswith(prefix):
            value = strip_quotes(token.value[len(prefix) :])
            return Directive(key=key, value=value, grouped=token.grouped)
    return token


@dataclass
class ParsedQuery:
    """Directive values and free text pulled out of one query string.

    Values are raw strings; nothing here has been validated yet.
    """

    terms: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)
    before: list[str] = field(default_factory=list)
    senders: list[str] = field(default_factory=list)
    conversation_id: str | None = None

    @property
    def text(self) -> str:
        return " ".join(self.terms)


def extract_directives(
    tokens: Iterable[Token], diagnostics: Diagnostics | None = None
) -> ParsedQuery:
    """Separate directives from free-text terms.

    ``FROM:`` directives accumulate and ``CONVERSATION:`` keeps its last
    occurrence, even an empty one.  ``AFTER:`` and ``BEFORE:`` values are
    kept in order so the normalizer can apply the last one that parses; a
    malformed date then counts as absent instead of erasing an earlier
    valid one.
    Grouped free text is dropped from the text query while grouped
    directives still apply.

    Args:
        tokens: Tokens from :func:`~chat_archive.search.tokenizer.tokenize`.
        diagnostics: Collector for dropped directives.

    Returns:
        The extracted raw values.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    parsed = ParsedQuery()

    for token in tokens:
        if isinstance(token, FreeText):
            token = classify_segment(token)

        if isinstance(token, Directive):
            if token.key == CONVERSATION:
                # An empty id is still a conversation filter; it fails closed later
                parsed.conversation_id = token.value
                continue
            if not token.value.strip():
                diagnostics.add(
                    "extract", "empty-directive", f"{token.key}: directive has no value", token.key
                )
                continue
            if token.key == FROM:
                parsed.senders.append(token.value)
            elif token.key == AFTER:
                parsed.after.append(token.value)
            elif token.key == BEFORE:
                parsed.before.append(token.value)
        elif isinstance(token, FreeText) and not token.grouped:
            term = strip_quotes(token.value)
            if term:
                parsed.terms.append(term)

    log.debug(
        "Parsed text=%r senders=%r after=%r before=%r conversation=%r",
        parsed.text,
        parsed.senders,
        parsed.after,
        parsed.before,
        parsed.conversation_id,
    )
    return parsed


@dataclass
class ContactSelector:
    """A contact picked in the UI: any of its phones or emails may match."""

    contact_id: str | None = None
    phones: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContactSelector:
        contact_id = data.get("contact_id", data.get("contactId"))
        return cls(
            contact_id=None if contact_id is None else str(contact_id),
            phones=[str(p) for p in data.get("phones") or []],
            emails=[str(e) for e in data.get("emails") or []],
        )


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass
class SearchParams:
    """Structured search request.

    Attributes:
        query: Free text, which may itself contain directives.
        start_date: Earliest calendar date (``YYYY-MM-DD``), inclusive.
        end_date: Latest calendar date (``YYYY-MM-DD``), inclusive.
        contacts: Contacts whose messages should match.
        conversation_id: Restrict to one conversation.
        only_my_messages: Only messages I sent.
        only_with_attachments: Only messages with an attachment.
        sort_direction: ``"asc"`` or ``"desc"`` by date.
        conversation_type: ``"all"``, ``"direct"`` or ``"group"``.
    """

    query: str = ""
    start_date: str | None = None
    end_date: str | None = None
    contacts: list[ContactSelector] = field(default_factory=list)
    conversation_id: str | None = None
    only_my_messages: bool = False
    only_with_attachments: bool = False
    sort_direction: str = "desc"
    conversation_type: str = "all"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchParams:
        """Build params from a UI payload with snake_case or camelCase keys."""
        conversation_id = _pick(data, "conversation_id", "conversationId")
        contacts = _pick(data, "contacts", "selected_contacts", "selectedContacts") or []
        return cls(
            query=str(_pick(data, "query", default="") or ""),
            start_date=_pick(data, "start_date", "startDate"),
            end_date=_pick(data, "end_date", "endDate"),
            contacts=[ContactSelector.from_dict(c) for c in contacts],
            conversation_id=None if conversation_id is None else str(conversation_id),
            only_my_messages=bool(_pick(data, "only_my_messages", "onlyMyMessages", default=False)),
            only_with_attachments=bool(
                _pick(data, "only_with_attachments", "onlyWithAttachments", default=False)
            ),
            sort_direction=str(_pick(data, "sort_direction", "sortDirection", default="desc")),
            conversation_type=str(
                _pick(data, "conversation_type", "conversationType", default="all")
            ),
        )


def parse_query(query_string: str) -> SearchParams:
    """Lower a legacy free-form query string into structured params.

    Directives stay in the text and are extracted by the normal
    pipeline, so the string and structured modes behave identically.
    """
    return SearchParams(query=query_string)


def parse_text(query_string: str, diagnostics: Diagnostics | None = None) -> ParsedQuery:
    """Tokenize and extract directives from raw query text."""
    return extract_directives(tokenize(query_string), diagnostics)
