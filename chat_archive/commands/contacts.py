"""Show contacts from the AddressBook database."""

from __future__ import annotations

import json

import click
from rich.text import Text

from chat_archive.cli import Context, pass_context
from chat_archive.commands import (
    EXIT_DATABASE_ERROR,
    EXIT_NO_DATABASE,
    EXIT_NO_RESULTS,
    EXIT_SUCCESS,
)
from chat_archive.contacts import CONTACT_TABLES, read_contacts, summarize_contacts
from chat_archive.db.session import get_session
from chat_archive.exceptions import DatabaseError
from chat_archive.utils.output import create_table, error, info, render_paged


@click.command("contacts")
@click.option(
    "--limit",
    "-l",
    type=int,
    default=1000,
    show_default=True,
    help="Maximum rows read from each contacts table",
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
    """List contacts with their emails and phone numbers.

    Requires paths.contacts_db in the config file or --contacts-db.
    """
    config = ctx.config
    if config is None or config.contacts_db is None:
        error(
            "No contacts database configured",
            hint="Set paths.contacts_db in the config file or pass --contacts-db",
        )
        raise SystemExit(EXIT_NO_DATABASE)

    if not config.contacts_db.exists():
        error(f"Contacts database not found: {config.contacts_db}")
        raise SystemExit(EXIT_NO_DATABASE)

    try:
        with get_session(config.contacts_db, required_tables=CONTACT_TABLES) as session:
            contacts = read_contacts(session, limit=limit)
    except DatabaseError as e:
        error(f"Failed to read contacts: {e}")
        raise SystemExit(EXIT_DATABASE_ERROR)

    summary = summarize_contacts(contacts)

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "contacts": [c.to_dict() for c in contacts],
                    "summary": {
                        "contacts": summary.contacts,
                        "emails": summary.emails,
                        "phones": summary.phones,
                    },
                },
                indent=2,
            )
        )
        raise SystemExit(EXIT_SUCCESS)

    if not contacts:
        info("No contacts found")
        raise SystemExit(EXIT_NO_RESULTS)

    info(
        f"Found {summary.contacts} contacts, {summary.emails} emails, "
        f"and {summary.phones} phone numbers"
    )

    table = create_table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right", no_wrap=True)
    table.add_column("Name", style="message.sender")
    table.add_column("Emails")
    table.add_column("Phones")

    for c in sorted(contacts, key=lambda c: (c.display_name or "").lower()):
        table.add_row(
            c.contact_id,
            Text(c.display_name or "<No Name>"),
            Text(", ".join(c.emails)),
            ", ".join(c.phones),
        )

    render_paged(table, header_lines=3)
    raise SystemExit(EXIT_SUCCESS)
