"""Compose normalized filters into one parameter-bound message query and run it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, false, func, literal_column, or_, select
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import SQLAlchemyError

from chat_archive.db.models import ChatMessageJoin, Handle, Message, MessageAttachmentJoin
from chat_archive.db.queries import conversation_exists, message_select, participant_count
from chat_archive.db.session import get_session
from chat_archive.exceptions import (
    ConversationNotFoundError,
    QueryExecutionError,
    ValidationError,
)
from chat_archive.search.diagnostics import Diagnostics
from chat_archive.search.filters import (
    ConversationKind,
    Email,
    PhoneDigits,
    RawIdentifier,
    SearchFilters,
    SenderMatcher,
    SortOrder,
    normalize,
    parse_conversation_id,
)
from chat_archive.search.parser import SearchParams, parse_query
from chat_archive.search.results import MessageRecord, SearchOutcome, map_rows
from chat_archive.utils.phones import PHONE_PUNCTUATION
from chat_archive.utils.timestamps import fits_store_int

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.engine import Compiled
    from sqlalchemy.orm import Session

    from chat_archive.contacts import ContactDirectory

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
CONVERSATION_MESSAGES_LIMIT = 1000

# Clause names, in the order they are always emitted
TEXT = "text"
DATE_AFTER = "date-after"
DATE_BEFORE = "date-before"
SENDER_GROUP = "sender-group"
CONVERSATION_ID = "conversation-id"
MY_MESSAGES = "my-messages-flag"
ATTACHMENT = "attachment-flag"
CONVERSATION_KIND = "conversation-kind"

CLAUSE_ORDER: tuple[str, ...] = (
    TEXT,
    DATE_AFTER,
    DATE_BEFORE,
    SENDER_GROUP,
    CONVERSATION_ID,
    MY_MESSAGES,
    ATTACHMENT,
    CONVERSATION_KIND,
)


@dataclass
class Clause:
    """One named WHERE fragment and the values bound into it, in order."""

    name: str
    expression: Any
    params: tuple[Any, ...] = ()


@dataclass
class ComposedQuery:
    """A message query ready to run.

    ``clauses`` are AND-ed in :data:`CLAUSE_ORDER`.  A fail-closed query
    matches nothing and must not be sent to the store.
    """

    clauses: list[Clause] = field(default_factory=list)
    sort: SortOrder = SortOrder.DESCENDING
    limit: int = DEFAULT_LIMIT
    fail_closed: bool = False

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.clauses]

    @property
    def parameters(self) -> list[Any]:
        """Bound filter values flattened in clause order."""
        return [p for c in self.clauses for p in c.params]

    def clause(self, name: str) -> Clause | None:
        for c in self.clauses:
            if c.name == name:
                return c
        return None

    @property
    def statement(self) -> Select:
        stmt = message_select()
        if self.clauses:
            stmt = stmt.where(and_(*(c.expression for c in self.clauses)))
        if self.sort is SortOrder.ASCENDING:
            stmt = stmt.order_by(Message.date.asc(), Message.rowid.asc())
        else:
            stmt = stmt.order_by(Message.date.desc(), Message.rowid.desc())
        return stmt.limit(self.limit)

    def compile(self) -> Compiled:
        return self.statement.compile(dialect=sqlite.dialect())

    @property
    def sql(self) -> str:
        return str(self.compile())


def _stored_digits(column):
    """``column`` with phone punctuation removed, so formatted numbers compare by digits."""
    expression = column
    for ch in sorted(PHONE_PUNCTUATION):
        expression = func.replace(expression, literal_column(f"'{ch}'"), literal_column("''"))
    return expression


def _sender_clause(matcher: SenderMatcher) -> Clause:
    """Match one sender against both the canonical and the as-entered handle id."""
    if isinstance(matcher, PhoneDigits):
        pattern = f"%{matcher.suffix}"
        expression = or_(
            _stored_digits(Handle.identifier).like(pattern),
            _stored_digits(Handle.uncanonicalized_id).like(pattern),
        )
    elif isinstance(matcher, Email):
        pattern = matcher.address
        expression = or_(
            func.lower(Handle.identifier) == pattern,
            func.lower(Handle.uncanonicalized_id) == pattern,
        )
    elif isinstance(matcher, RawIdentifier):
        pattern = f"%{matcher.value}%"
        expression = or_(
            Handle.identifier.like(pattern), Handle.uncanonicalized_id.like(pattern)
        )
    else:
        raise TypeError(f"Unknown sender matcher: {matcher!r}")
    return Clause(SENDER_GROUP, expression, (pattern, pattern))


def compose_query(filters: SearchFilters, limit: int = DEFAULT_LIMIT) -> ComposedQuery:
    """Build the message query for a set of filters.

    Args:
        filters: Normalized filters.
        limit: Maximum rows to return.

    Returns:
        ComposedQuery with one clause per active filter.

    Raises:
        ValidationError: If ``limit`` is not positive.
    """
    if limit < 1:
        raise ValidationError("limit", limit, "must be at least 1")

    clauses: list[Clause] = []

    if filters.text_pattern is not None:
        clauses.append(
            Clause(TEXT, Message.text.like(filters.text_pattern), (filters.text_pattern,))
        )

    if filters.after is not None:
        clauses.append(Clause(DATE_AFTER, Message.date >= filters.after, (filters.after,)))

    if filters.before is not None:
        clauses.append(Clause(DATE_BEFORE, Message.date <= filters.before, (filters.before,)))

    if filters.senders:
        parts = [_sender_clause(m) for m in filters.senders]
        clauses.append(
            Clause(
                SENDER_GROUP,
                or_(*(p.expression for p in parts)),
                tuple(v for p in parts for v in p.params),
            )
        )

    if filters.fail_closed:
        clauses.append(Clause(CONVERSATION_ID, false()))
    elif filters.conversation_id is not None:
        clauses.append(
            Clause(
                CONVERSATION_ID,
                ChatMessageJoin.chat_id == filters.conversation_id,
                (filters.conversation_id,),
            )
        )

    if filters.only_from_me:
        clauses.append(Clause(MY_MESSAGES, Message.is_from_me == 1, (1,)))

    if filters.only_with_attachment:
        has_attachment = (
            select(MessageAttachmentJoin.message_id)
            .where(MessageAttachmentJoin.message_id == Message.rowid)
            .exists()
        )
        clauses.append(Clause(ATTACHMENT, has_attachment))

    if filters.conversation_kind is ConversationKind.DIRECT:
        clauses.append(Clause(CONVERSATION_KIND, participant_count() <= 1, (1,)))
    elif filters.conversation_kind is ConversationKind.GROUP:
        clauses.append(Clause(CONVERSATION_KIND, participant_count() > 1, (1,)))

    return ComposedQuery(
        clauses=clauses, sort=filters.sort, limit=limit, fail_closed=filters.fail_closed
    )


def execute_search(
    session: Session,
    composed: ComposedQuery,
    *,
    directory: ContactDirectory | None = None,
    diagnostics: Diagnostics | None = None,
    short_email_senders: bool = False,
) -> SearchOutcome:
    """Run a composed query and map its rows.

    Args:
        session: Open session on the chat store.
        composed: Query from :func:`compose_query`.
        directory: Resolves sender identifiers to contact names.
        diagnostics: Collector to append row-level problems to.
        short_email_senders: Show email senders by their local part.

    Returns:
        SearchOutcome with the mapped messages.

    Raises:
        QueryExecutionError: If the store fails to run the query.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    if composed.fail_closed:
        log.debug("Query fails closed, not executing")
        return SearchOutcome(messages=[], diagnostics=diagnostics)

    stmt = composed.statement
    if log.isEnabledFor(logging.DEBUG):
        filters = ", ".join(composed.names) or "no filters"
        log.debug("Executing SQL (%s):\n%s", filters, composed.sql)
        log.debug("Query parameters: %r", composed.parameters)

    try:
        rows = session.execute(stmt).mappings().all()
    except SQLAlchemyError as e:
        raise QueryExecutionError(str(e)) from e

    messages = map_rows(
        rows,
        directory=directory,
        diagnostics=diagnostics,
        short_email_senders=short_email_senders,
    )
    log.debug("Search returned %d rows, %d mapped", len(rows), len(messages))
    return SearchOutcome(messages=messages, diagnostics=diagnostics)


def build_search(
    params: SearchParams | str, *, limit: int = DEFAULT_LIMIT
) -> tuple[ComposedQuery, Diagnostics]:
    """Interpret a search request without touching the store.

    Args:
        params: Structured params, or raw query text.
        limit: Maximum rows the query returns.

    Returns:
        The composed query and the diagnostics collected on the way.
    """
    if isinstance(params, str):
        params = parse_query(params)
    diagnostics = Diagnostics()
    filters = normalize(params, diagnostics)
    return compose_query(filters, limit), diagnostics


def search_messages(
    db_path: Path,
    params: SearchParams | str,
    *,
    limit: int = DEFAULT_LIMIT,
    directory: ContactDirectory | None = None,
) -> SearchOutcome:
    """Search the chat store at ``db_path``.

    A session is opened for this call only.  Fail-closed searches
    return an empty outcome without opening the store.
    """
    composed, diagnostics = build_search(params, limit=limit)
    if composed.fail_closed:
        return SearchOutcome(messages=[], diagnostics=diagnostics)

    with get_session(db_path) as session:
        return execute_search(session, composed, directory=directory, diagnostics=diagnostics)


def get_conversation_messages(
    session: Session,
    conversation_id: str | int,
    limit: int = CONVERSATION_MESSAGES_LIMIT,
    *,
    directory: ContactDirectory | None = None,
) -> list[MessageRecord]:
    """Messages of one conversation, oldest first.

    Raises:
        ValidationError: If the id is not a non-negative integer.
        ConversationNotFoundError: If no such conversation exists.
    """
    if isinstance(conversation_id, int) and not isinstance(conversation_id, bool):
        valid = conversation_id >= 0 and fits_store_int(conversation_id)
        chat_id = conversation_id if valid else None
    else:
        chat_id = parse_conversation_id(str(conversation_id))
    if chat_id is None:
        raise ValidationError("conversation_id", conversation_id, "must be a non-negative integer")

    if not conversation_exists(session, chat_id):
        raise ConversationNotFoundError(chat_id)

    composed = compose_query(
        SearchFilters(conversation_id=chat_id, sort=SortOrder.ASCENDING), limit
    )
    outcome = execute_search(session, composed, directory=directory, short_email_senders=True)
    return outcome.messages
