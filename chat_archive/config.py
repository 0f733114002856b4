"""Configuration management for chat-archive."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from chat_archive.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

DEFAULT_SEARCH_LIMIT = 100
MAX_SEARCH_LIMIT = 10000
SORT_CHOICES = ("asc", "desc")


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "chat-archive" / "config.toml"


def get_default_chat_db_path() -> Path:
    """Get the default chat store path."""
    return Path.home() / "Library" / "Messages" / "chat.db"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        chat_db: Path to the chat store SQLite database.
        contacts_db: Optional path to an AddressBook SQLite database used
            to show contact names instead of phone numbers and emails.
        search_limit: Default maximum number of search results.
        default_sort: Default sort direction by date, "asc" or "desc".
        colored_output: Whether to use colored terminal output.
        config_path: Path where config was loaded from (None if defaults).
    """

    chat_db: Path = field(default_factory=get_default_chat_db_path)
    contacts_db: Path | None = None
    search_limit: int = DEFAULT_SEARCH_LIMIT
    default_sort: str = "desc"
    colored_output: bool = True
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.
        """
        warnings: list[str] = []

        # Expand user paths
        self.chat_db = self.chat_db.expanduser().resolve()
        if self.contacts_db is not None:
            self.contacts_db = self.contacts_db.expanduser().resolve()

        # Check if paths exist (warnings, not errors)
        if not self.chat_db.exists():
            warnings.append(f"Chat database not found: {self.chat_db}")

        if self.contacts_db is not None and not self.contacts_db.exists():
            warnings.append(f"Contacts database not found: {self.contacts_db}")

        if not 1 <= self.search_limit <= MAX_SEARCH_LIMIT:
            warnings.append(
                f"search.limit={self.search_limit} is outside valid range 1-{MAX_SEARCH_LIMIT}, "
                f"using {DEFAULT_SEARCH_LIMIT}"
            )
            self.search_limit = DEFAULT_SEARCH_LIMIT

        if self.default_sort not in SORT_CHOICES:
            warnings.append(f"search.default_sort={self.default_sort!r} is invalid, using 'desc'")
            self.default_sort = "desc"

        return warnings


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        # Use defaults
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: chat-archive init-config"
        )
        config_warnings = config.validate()
        return config, warnings + config_warnings

    # Load from file
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [paths] section
    paths = data.get("paths", {})
    if "chat_db" in paths:
        value = paths["chat_db"]
        if not isinstance(value, str):
            raise ConfigValidationError("paths.chat_db", value, "must be a string path")
        config.chat_db = Path(value)

    if "contacts_db" in paths:
        value = paths["contacts_db"]
        if not isinstance(value, str):
            raise ConfigValidationError("paths.contacts_db", value, "must be a string path")
        config.contacts_db = Path(value)

    # Parse [search] section
    search = data.get("search", {})
    if "limit" in search:
        value = search["limit"]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError("search.limit", value, "must be an integer")
        config.search_limit = value

    if "default_sort" in search:
        value = search["default_sort"]
        if not isinstance(value, str):
            raise ConfigValidationError("search.default_sort", value, "must be a string")
        config.default_sort = value.lower()

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()

    # Ensure directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Build TOML structure
    data: dict[str, Any] = {
        "paths": {
            "chat_db": str(config.chat_db),
        },
        "search": {
            "limit": config.search_limit,
            "default_sort": config.default_sort,
        },
        "display": {
            "colored_output": config.colored_output,
        },
    }

    if config.contacts_db is not None:
        data["paths"]["contacts_db"] = str(config.contacts_db)

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
