"""List conversations in the chat archive."""

from __future__ import annotations

import json

import click
from rich.text import Text

from chat_archive.cli import Context, pass_context
from chat_archive.commands import (
    EXIT_DATABASE_ERROR,
    EXIT_INVALID_INPUT,
    EXIT_NO_RESULTS,
    EXIT_SUCCESS,
)
from chat_archive.commands._common import load_contact_directory, require_chat_db
from chat_archive.db.queries import list_conversations
from chat_archive.db.session import get_session
from chat_archive.exceptions import DatabaseError
from chat_archive.utils.output import create_table, error, format_timestamp, info, render_paged


@click.command("conversations")
@click.option(
    "--limit",
    "-l",
    type=int,
    default=100,
    show_default=True,
    help="Maximum number of conversations",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format (default: table)",
)
@pass_context
def cli(ctx: Context, limit: int, output_format: str) -> None:
    """List conversations, most recently active first.

    The ID column is what `messages` and `search --conversation` take.
    """
    if limit < 1:
        error("--limit must be at least 1")
        raise SystemExit(EXIT_INVALID_INPUT)

    chat_db = require_chat_db(ctx)
    directory = load_contact_directory(ctx)

    try:
        with get_session(chat_db) as session:
            conversations = list_conversations(session, limit=limit)
    except DatabaseError as e:
        error(f"Failed to list conversations: {e}")
        raise SystemExit(EXIT_DATABASE_ERROR)

    if directory is not None:
        for conversation in conversations:
            conversation.name = directory.resolve(conversation.name) or conversation.name

    if output_format == "json":
        click.echo(json.dumps([c.to_dict() for c in conversations], indent=2))
        raise SystemExit(EXIT_SUCCESS)

    if not conversations:
        info("No conversations found")
        raise SystemExit(EXIT_NO_RESULTS)

    table = create_table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right", no_wrap=True)
    table.add_column("Name", style="message.sender")
    table.add_column("People", justify="right")
    table.add_column("Last message")
    table.add_column("Date", style="message.date", no_wrap=True)

    for c in conversations:
        last = " ".join((c.last_message or "No messages").split())
        table.add_row(
            c.id,
            Text(c.name or ""),
            str(c.participant_count),
            Text(last[:60]),
            format_timestamp(c.last_message_date),
        )

    render_paged(table, header_lines=3)
    raise SystemExit(EXIT_SUCCESS)
