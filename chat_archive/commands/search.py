"""Search messages in the chat archive."""

from __future__ import annotations

import json

import click
from rich.markup import escape
from rich.text import Text

from chat_archive.cli import Context, pass_context
from chat_archive.commands import (
    EXIT_DATABASE_ERROR,
    EXIT_INVALID_INPUT,
    EXIT_NO_DATABASE,
    EXIT_NO_RESULTS,
    EXIT_SUCCESS,
)
from chat_archive.commands._common import (
    load_contact_directory,
    print_diagnostics,
    require_chat_db,
)
from chat_archive.db.session import get_session
from chat_archive.exceptions import DatabaseError, DatabaseNotFoundError, ValidationError
from chat_archive.search.parser import ContactSelector, SearchParams
from chat_archive.search.query import build_search, execute_search
from chat_archive.search.results import MessageRecord, SearchOutcome
from chat_archive.utils.output import (
    create_table,
    error,
    format_timestamp,
    info,
    render_paged,
)

# Message text longer than this is clipped in table output
TEXT_CLIP = 80


def _clip_text(value: str, max_width: int | None) -> str:
    """Truncate text to max_width, appending ellipsis if clipped."""
    value = " ".join(value.split())
    if max_width is None or len(value) <= max_width:
        return value
    if max_width <= 1:
        return value[:max_width]
    return value[: max_width - 1] + "…"


@click.command("search")
@click.argument("query", nargs=-1, required=False)
@click.option("--after", "-a", metavar="YYYY-MM-DD", help="Only messages on or after this date")
@click.option("--before", "-b", metavar="YYYY-MM-DD", help="Only messages on or before this date")
@click.option(
    "--from",
    "-F",
    "senders",
    multiple=True,
    help="Sender phone number or identifier (repeatable)",
)
@click.option("--email", "-e", "emails", multiple=True, help="Sender email (repeatable)")
@click.option("--conversation", "-C", "conversation_id", help="Only this conversation id")
@click.option("--mine", is_flag=True, default=False, help="Only messages I sent")
@click.option(
    "--with-attachments",
    is_flag=True,
    default=False,
    help="Only messages that have an attachment",
)
@click.option(
    "--kind",
    "-k",
    type=click.Choice(["all", "direct", "group"]),
    default="all",
    show_default=True,
    help="Conversation kind",
)
@click.option(
    "--sort",
    "-s",
    type=click.Choice(["asc", "desc"]),
    default=None,
    help="Sort by date (default: from config, else desc)",
)
@click.option(
    "--limit",
    "-l",
    type=int,
    default=None,
    help="Maximum number of results (default: from config, else 100)",
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
def cli(
    ctx: Context,
    query: tuple[str, ...],
    after: str | None,
    before: str | None,
    senders: tuple[str, ...],
    emails: tuple[str, ...],
    conversation_id: str | None,
    mine: bool,
    with_attachments: bool,
    kind: str,
    sort: str | None,
    limit: int | None,
    output_format: str,
) -> None:
    """Search messages by text, date, sender and conversation.

    QUERY is free text that may contain directives. Multiple arguments
    are joined with spaces. Directive keys are upper case.

    \b
    Directives:
      AFTER:YYYY-MM-DD        on or after the date (UTC)
      BEFORE:YYYY-MM-DD       on or before the date (UTC)
      FROM:sender             phone, email or identifier; repeat for OR
      CONVERSATION:id         only this conversation
      "quoted phrase"         keeps spaces, also in FROM:"..."
      ( ... )                 grouped text is ignored, directives apply

    \b
    Examples:
      chat-archive search dinner
      chat-archive search 'FROM:"+1 415 555 0100" FROM:bob@example.com'
      chat-archive search tickets AFTER:2024-01-01 BEFORE:2024-01-31
      chat-archive search --mine --with-attachments --kind group
    """
    config = ctx.config
    query_string = " ".join(query)

    if limit is None:
        limit = config.search_limit if config is not None else 100
    if sort is None:
        sort = config.default_sort if config is not None else "desc"

    contacts = []
    if senders or emails:
        contacts.append(ContactSelector(phones=list(senders), emails=list(emails)))

    params = SearchParams(
        query=query_string,
        start_date=after,
        end_date=before,
        contacts=contacts,
        conversation_id=conversation_id,
        only_my_messages=mine,
        only_with_attachments=with_attachments,
        sort_direction=sort,
        conversation_type=kind,
    )

    try:
        composed, diagnostics = build_search(params, limit=limit)
    except ValidationError as e:
        error(str(e))
        raise SystemExit(EXIT_INVALID_INPUT)

    print_diagnostics(ctx, diagnostics)
    shown = len(diagnostics)

    if composed.fail_closed:
        # Nothing can match; the store is not opened
        outcome = SearchOutcome(diagnostics=diagnostics)
    else:
        chat_db = require_chat_db(ctx)
        directory = load_contact_directory(ctx)

        try:
            with get_session(chat_db) as session:
                outcome = execute_search(
                    session, composed, directory=directory, diagnostics=diagnostics
                )
        except DatabaseNotFoundError as e:
            error(str(e))
            raise SystemExit(EXIT_NO_DATABASE)
        except DatabaseError as e:
            error(f"Search failed: {e}")
            raise SystemExit(EXIT_DATABASE_ERROR)

        print_diagnostics(ctx, outcome.diagnostics, start=shown)

    if output_format == "json":
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        raise SystemExit(EXIT_SUCCESS)

    if not outcome.messages:
        if not ctx.quiet:
            info(f"No results for: {escape(query_string) or '(all messages)'}")
        raise SystemExit(EXIT_NO_RESULTS)

    _print_table(outcome.messages, query_string)
    raise SystemExit(EXIT_SUCCESS)


def _print_table(messages: list[MessageRecord], query_string: str) -> None:
    """Print results as a Rich table, using pager when appropriate."""
    info(f"Search: {escape(query_string) or '(all messages)'} ({len(messages)} results)")

    table = create_table(show_header=True, header_style="bold")
    table.add_column("Date", style="message.date", no_wrap=True)
    table.add_column("Chat", justify="right", no_wrap=True)
    table.add_column("From", style="message.sender", no_wrap=True)
    table.add_column("Message")
    table.add_column("Attachment", style="message.attachment")

    for m in messages:
        sender = Text("me", style="message.me") if m.is_from_me else Text(m.sender or "")
        table.add_row(
            format_timestamp(m.date),
            m.conversation_id or "",
            sender,
            Text(_clip_text(m.text, TEXT_CLIP)),
            Text(m.attachment or ""),
        )

    render_paged(table, header_lines=3)
