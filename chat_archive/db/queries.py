"""Query functions for the chat store."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from chat_archive.db.models import (
    Attachment,
    Chat,
    ChatHandleJoin,
    ChatMessageJoin,
    Handle,
    Message,
    MessageAttachmentJoin,
)
from chat_archive.utils.phones import digits_only, is_phone_like
from chat_archive.utils.timestamps import store_to_unix

log = logging.getLogger(__name__)


def participant_count():
    """Correlated count of participants in the chat of the current row.

    Used inside a select that already joins ``chat_message_join``.
    """
    return (
        select(func.count())
        .select_from(ChatHandleJoin)
        .where(ChatHandleJoin.chat_id == ChatMessageJoin.chat_id)
        .correlate(ChatMessageJoin)
        .scalar_subquery()
    )


def first_attachment_name():
    """Correlated name of the first attachment of the current message, or NULL."""
    return (
        select(func.coalesce(Attachment.transfer_name, Attachment.filename))
        .join(MessageAttachmentJoin, MessageAttachmentJoin.attachment_id == Attachment.rowid)
        .where(MessageAttachmentJoin.message_id == Message.rowid)
        .order_by(Attachment.rowid)
        .limit(1)
        .correlate(Message)
        .scalar_subquery()
    )


def message_select() -> Select:
    """Base select for message rows with their conversation and sender.

    Each row carries ``message_id``, ``text``, ``date``, ``is_from_me``,
    ``chat_id``, ``handle_id``, ``sender_id`` and ``attachment``.  A
    message with no handle (sent by me, or a system row) still matches.
    """
    return (
        select(
            Message.rowid.label("message_id"),
            Message.text.label("text"),
            Message.date.label("date"),
            Message.is_from_me.label("is_from_me"),
            ChatMessageJoin.chat_id.label("chat_id"),
            Handle.identifier.label("handle_id"),
            func.coalesce(Handle.uncanonicalized_id, Handle.identifier).label("sender_id"),
            first_attachment_name().label("attachment"),
        )
        .select_from(Message)
        .join(ChatMessageJoin, ChatMessageJoin.message_id == Message.rowid)
        .outerjoin(Handle, Message.handle_id == Handle.rowid)
    )


@dataclass
class Conversation:
    """A conversation summary for listings.

    Attributes:
        id: Conversation (chat) row id, as a string.
        name: Display name, else the first participant's identifier.
        last_message: Text of the most recent message.
        last_message_date: Unix seconds of the most recent message, 0 if unknown.
        participant_count: Number of remote participants.
    """

    id: str
    name: str | None
    last_message: str | None
    last_message_date: int
    participant_count: int

    @property
    def is_group(self) -> bool:
        return self.participant_count > 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "last_message": self.last_message,
            "last_message_date": self.last_message_date,
            "participant_count": self.participant_count,
        }


def conversation_name(display_name: str | None, handle_id: str | None) -> str | None:
    """Pick a conversation's name; phone numbers are reduced to their digits.

    Examples:
        >>> conversation_name("", "+1 (415) 555-0100")
        '14155550100'
        >>> conversation_name("Book club", "+14155550100")
        'Book club'
    """
    name = display_name or handle_id
    if name and is_phone_like(name):
        return digits_only(name)
    return name


def list_conversations(session: Session, limit: int = 100) -> list[Conversation]:
    """List conversations, most recent activity first.

    Args:
        session: Active database session.
        limit: Maximum conversations to return.

    Returns:
        List of Conversation summaries.
    """
    last_date = (
        select(ChatMessageJoin.chat_id, func.max(Message.date).label("last_date"))
        .join(Message, Message.rowid == ChatMessageJoin.message_id)
        .group_by(ChatMessageJoin.chat_id)
        .subquery()
    )
    last_text = (
        select(Message.text)
        .join(ChatMessageJoin, ChatMessageJoin.message_id == Message.rowid)
        .where(ChatMessageJoin.chat_id == Chat.rowid)
        .order_by(Message.date.desc(), Message.rowid.desc())
        .limit(1)
        .correlate(Chat)
        .scalar_subquery()
    )
    first_handle = (
        select(Handle.identifier)
        .join(ChatHandleJoin, ChatHandleJoin.handle_id == Handle.rowid)
        .where(ChatHandleJoin.chat_id == Chat.rowid)
        .order_by(Handle.rowid)
        .limit(1)
        .correlate(Chat)
        .scalar_subquery()
    )
    participants = (
        select(func.count())
        .select_from(ChatHandleJoin)
        .where(ChatHandleJoin.chat_id == Chat.rowid)
        .correlate(Chat)
        .scalar_subquery()
    )

    stmt = (
        select(
            Chat.rowid.label("chat_id"),
            Chat.display_name.label("display_name"),
            first_handle.label("handle_id"),
            last_text.label("last_message"),
            last_date.c.last_date,
            participants.label("participants"),
        )
        .select_from(Chat)
        .outerjoin(last_date, last_date.c.chat_id == Chat.rowid)
        .order_by(func.coalesce(last_date.c.last_date, 0).desc(), Chat.rowid)
        .limit(limit)
    )

    conversations = []
    for row in session.execute(stmt):
        raw_date = row.last_date
        conversations.append(
            Conversation(
                id=str(row.chat_id),
                name=conversation_name(row.display_name, row.handle_id),
                last_message=row.last_message,
                last_message_date=store_to_unix(raw_date) if raw_date and raw_date > 0 else 0,
                participant_count=row.participants or 0,
            )
        )
    log.debug("Listed %d conversations", len(conversations))
    return conversations


def conversation_exists(session: Session, conversation_id: int) -> bool:
    """Return True if a conversation with this row id exists."""
    return session.get(Chat, conversation_id) is not None
