"""Command-line interface for chat-archive."""

from __future__ import annotations

import os
from pathlib import Path

import click

from chat_archive import __version__
from chat_archive.config import Config, load_config
from chat_archive.exceptions import ChatArchiveError
from chat_archive.utils.output import (
    error,
    set_color,
    set_pager,
    set_verbosity,
    warning,
)


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False
        self.pager: bool | None = None  # None = auto


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/chat-archive/config.toml)",
)
@click.option(
    "--db",
    "-d",
    "chat_db",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help="Path to the chat database (overrides config)",
)
@click.option(
    "--contacts-db",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help="Path to the contacts database (overrides config)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output and log generated SQL (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.option(
    "--pager/--no-pager",
    default=None,
    help="Force pager on/off (default: auto-detect)",
)
@click.version_option(version=__version__, prog_name="chat-archive")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    chat_db: Path | None,
    contacts_db: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
    pager: bool | None,
) -> None:
    """chat-archive: Search and browse a local chat archive.

    Reads an iMessage-style chat database and, optionally, an
    AddressBook database to show contact names.

    Configuration is loaded from ~/.config/chat-archive/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Messages from one person about dinner since March
        chat-archive search 'dinner FROM:"+1 415 555 0100" AFTER:2024-03-01'

        # Show help for a specific command
        chat-archive search --help
    """
    # Initialize context
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet
    app_ctx.pager = pager

    # Configure module-level verbosity for output helpers
    set_verbosity(verbose=verbose, debug=debug)

    # Configure pager
    set_pager(pager)

    # Configure color output: disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None

    if disable_color:
        set_color(False)

    # Load configuration
    try:
        loaded_config, warnings = load_config(config)
    except ChatArchiveError as e:
        error(str(e))
        ctx.exit(1)
        return

    app_ctx.config = loaded_config

    # Command line paths win over the config file
    if chat_db is not None:
        loaded_config.chat_db = chat_db.expanduser().resolve()
        warnings = [w for w in warnings if not w.startswith("Chat database not found")]
    if contacts_db is not None:
        loaded_config.contacts_db = contacts_db.expanduser().resolve()

    # Apply config settings
    if not disable_color and not loaded_config.colored_output:
        set_color(False)

    # Show warnings unless quiet
    if not quiet:
        for warn in warnings:
            warning(warn)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    # Resolve subcommand chain
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    # Print group help
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from chat_archive.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
