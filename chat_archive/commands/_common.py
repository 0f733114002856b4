"""Helpers shared by the database-backed commands."""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from chat_archive.cli import Context
from chat_archive.commands import EXIT_NO_DATABASE
from chat_archive.contacts import ContactDirectory, load_directory
from chat_archive.exceptions import DatabaseError
from chat_archive.search.diagnostics import Diagnostics
from chat_archive.utils.output import error, verbose, warning


def require_chat_db(ctx: Context) -> Path:
    """Return the configured chat database path or exit."""
    config = ctx.config
    if config is None:
        error("Configuration not loaded")
        raise SystemExit(EXIT_NO_DATABASE)

    if not config.chat_db.exists():
        error(
            f"Chat database not found: {config.chat_db}",
            hint="Set paths.chat_db in the config file or pass --db",
        )
        raise SystemExit(EXIT_NO_DATABASE)
    return config.chat_db


def load_contact_directory(ctx: Context) -> ContactDirectory | None:
    """Load contact names if a contacts database is configured.

    A broken contacts database only costs the names, so it is reported
    as a warning.
    """
    config = ctx.config
    if config is None or config.contacts_db is None:
        return None

    try:
        directory = load_directory(config.contacts_db)
    except DatabaseError as e:
        if not ctx.quiet:
            warning(f"Contact names unavailable: {e}")
        return None

    verbose(f"Loaded {len(directory)} contact addresses from {config.contacts_db}")
    return directory


def print_diagnostics(ctx: Context, diagnostics: Diagnostics, start: int = 0) -> None:
    """Print diagnostics from index ``start`` on as warnings."""
    if ctx.quiet:
        return
    for diagnostic in list(diagnostics)[start:]:
        warning(escape(str(diagnostic)))
