"""Database layer for the chat store."""

from chat_archive.db.models import (
    Attachment,
    Chat,
    ChatBase,
    ChatHandleJoin,
    ChatMessageJoin,
    Handle,
    Message,
    MessageAttachmentJoin,
)
from chat_archive.db.queries import (
    Conversation,
    conversation_exists,
    list_conversations,
    message_select,
)
from chat_archive.db.session import REQUIRED_TABLES, get_engine, get_session

__all__ = [
    # Models
    "ChatBase",
    "Handle",
    "Message",
    "Chat",
    "ChatMessageJoin",
    "ChatHandleJoin",
    "Attachment",
    "MessageAttachmentJoin",
    # Session
    "REQUIRED_TABLES",
    "get_engine",
    "get_session",
    # Read queries
    "Conversation",
    "conversation_exists",
    "list_conversations",
    "message_select",
]
