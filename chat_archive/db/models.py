"""SQLAlchemy ORM models for the chat store (iMessage ``chat.db`` layout)."""

from __future__ import annotations

from sqlalchemy import (
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class ChatBase(DeclarativeBase):
    """Base class for all chat store models."""

    pass


class Handle(ChatBase):
    """A remote participant: phone number or email address."""

    __tablename__ = "handle"

    rowid: Mapped[int] = mapped_column("ROWID", Integer, primary_key=True, autoincrement=True)
    # Canonical form, e.g. "+14155550100" or "alice@example.com"
    identifier: Mapped[str | None] = mapped_column("id", Text)
    service: Mapped[str | None] = mapped_column(Text)
    # As originally entered, e.g. "(415) 555-0100"
    uncanonicalized_id: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Handle(rowid={self.rowid}, id='{self.identifier}')>"


class Message(ChatBase):
    """A single message; ``date`` is in store time (ns since 2001-01-01)."""

    __tablename__ = "message"

    rowid: Mapped[int] = mapped_column("ROWID", Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str | None] = mapped_column(Text)
    text: Mapped[str | None] = mapped_column(Text)
    handle_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("handle.ROWID"))
    date: Mapped[int | None] = mapped_column(Integer)
    is_from_me: Mapped[int | None] = mapped_column(Integer, default=0)
    cache_has_attachments: Mapped[int | None] = mapped_column(Integer, default=0)

    # Relationships
    handle: Mapped[Handle | None] = relationship("Handle")

    def __repr__(self) -> str:
        return f"<Message(rowid={self.rowid}, date={self.date})>"


class Chat(ChatBase):
    """A conversation, direct or group."""

    __tablename__ = "chat"

    rowid: Mapped[int] = mapped_column("ROWID", Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str | None] = mapped_column(Text)
    chat_identifier: Mapped[str | None] = mapped_column(Text)
    display_name: Mapped[str | None] = mapped_column(Text)
    style: Mapped[int | None] = mapped_column(Integer)

    # Relationships
    handles: Mapped[list[Handle]] = relationship("Handle", secondary="chat_handle_join")

    def __repr__(self) -> str:
        return f"<Chat(rowid={self.rowid}, display_name='{self.display_name}')>"


class ChatMessageJoin(ChatBase):
    """Junction table for conversation membership of messages."""

    __tablename__ = "chat_message_join"

    chat_id: Mapped[int] = mapped_column(Integer, ForeignKey("chat.ROWID"), primary_key=True)
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("message.ROWID"), primary_key=True
    )

    def __repr__(self) -> str:
        return f"<ChatMessageJoin(chat_id={self.chat_id}, message_id={self.message_id})>"


class ChatHandleJoin(ChatBase):
    """Junction table for conversation participants."""

    __tablename__ = "chat_handle_join"

    chat_id: Mapped[int] = mapped_column(Integer, ForeignKey("chat.ROWID"), primary_key=True)
    handle_id: Mapped[int] = mapped_column(Integer, ForeignKey("handle.ROWID"), primary_key=True)

    def __repr__(self) -> str:
        return f"<ChatHandleJoin(chat_id={self.chat_id}, handle_id={self.handle_id})>"


class Attachment(ChatBase):
    """A file sent with a message."""

    __tablename__ = "attachment"

    rowid: Mapped[int] = mapped_column("ROWID", Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str | None] = mapped_column(Text)
    mime_type: Mapped[str | None] = mapped_column(String(255))
    transfer_name: Mapped[str | None] = mapped_column(Text)
    total_bytes: Mapped[int | None] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<Attachment(rowid={self.rowid}, filename='{self.filename}')>"


class MessageAttachmentJoin(ChatBase):
    """Junction table linking messages to attachments."""

    __tablename__ = "message_attachment_join"

    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("message.ROWID"), primary_key=True
    )
    attachment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attachment.ROWID"), primary_key=True
    )

    def __repr__(self) -> str:
        return (
            f"<MessageAttachmentJoin(message_id={self.message_id}, "
            f"attachment_id={self.attachment_id})>"
        )
