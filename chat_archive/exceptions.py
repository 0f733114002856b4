"""Exception hierarchy for chat-archive."""

from pathlib import Path


class ChatArchiveError(Exception):
    """Base exception for all chat-archive errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all chat-archive errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(ChatArchiveError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Database Errors
class DatabaseError(ChatArchiveError):
    """Database-related errors."""

    pass


class DatabaseNotFoundError(DatabaseError):
    """Database file doesn't exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Database not found: {path}")


class SchemaVersionError(DatabaseError):
    """Database schema is incompatible."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Incompatible database schema: {detail}")


class DatabaseConnectionError(DatabaseError):
    """Failed to connect to database."""

    pass


class QueryExecutionError(DatabaseError):
    """The store rejected or failed to run a query.

    Raised instead of returning an empty result so callers can tell
    "nothing matched" apart from "the search did not run".
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Query failed: {detail}")


# Entity Not Found Errors
class NotFoundError(ChatArchiveError):
    """Requested entity not found."""

    pass


class ConversationNotFoundError(NotFoundError):
    """Conversation doesn't exist."""

    def __init__(self, conversation_id: int) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")


# Validation Errors
class ValidationError(ChatArchiveError):
    """Invalid input value."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")
