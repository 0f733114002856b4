"""Show the messages of one conversation."""

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
from chat_archive.db.session import get_session
from chat_archive.exceptions import DatabaseError, NotFoundError, ValidationError
from chat_archive.search.query import CONVERSATION_MESSAGES_LIMIT, get_conversation_messages
from chat_archive.utils.output import create_table, error, format_timestamp, info, render_paged


@click.command("messages")
@click.argument("conversation_id")
@click.option(
    "--limit",
    "-l",
    type=int,
    default=CONVERSATION_MESSAGES_LIMIT,
    show_default=True,
    help="Maximum number of messages",
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
def cli(ctx: Context, conversation_id: str, limit: int, output_format: str) -> None:
    """Show a conversation's messages, oldest first.

    CONVERSATION_ID is the ID shown by the `conversations` command.
    """
    chat_db = require_chat_db(ctx)
    directory = load_contact_directory(ctx)

    try:
        with get_session(chat_db) as session:
            messages = get_conversation_messages(
                session, conversation_id, limit, directory=directory
            )
    except (ValidationError, NotFoundError) as e:
        error(str(e))
        raise SystemExit(EXIT_INVALID_INPUT)
    except DatabaseError as e:
        error(f"Failed to read conversation: {e}")
        raise SystemExit(EXIT_DATABASE_ERROR)

    if output_format == "json":
        click.echo(json.dumps([m.to_dict() for m in messages], indent=2))
        raise SystemExit(EXIT_SUCCESS)

    if not messages:
        info(f"Conversation {conversation_id} has no messages")
        raise SystemExit(EXIT_NO_RESULTS)

    table = create_table(show_header=True, header_style="bold")
    table.add_column("Date", style="message.date", no_wrap=True)
    table.add_column("From", style="message.sender", no_wrap=True)
    table.add_column("Message")

    for m in messages:
        sender = Text("me", style="message.me") if m.is_from_me else Text(m.sender or "")
        text = Text(m.text)
        if m.attachment:
            text.append(f" [{m.attachment}]", style="message.attachment")
        table.add_row(format_timestamp(m.date), sender, text)

    render_paged(table, header_lines=3)
    raise SystemExit(EXIT_SUCCESS)
