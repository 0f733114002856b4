"""Initialize configuration file for chat-archive."""

from __future__ import annotations

from pathlib import Path

import click

from chat_archive.cli import Context, pass_context
from chat_archive.config import Config, get_default_config_path, save_config
from chat_archive.utils.output import error, info, success


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/chat-archive/config.toml)",
)
@click.option(
    "--chat-db",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Chat database path to write (default: ~/Library/Messages/chat.db)",
)
@click.option(
    "--contacts-db",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Contacts database path to write",
)
@pass_context
def cli(
    ctx: Context,
    force: bool,
    output: Path | None,
    chat_db: Path | None,
    contacts_db: Path | None,
) -> None:
    """Create a new configuration file with default settings.

    Creates a configuration file at the default location
    (~/.config/chat-archive/config.toml) or at a custom path
    specified with --output.

    Examples:

    \b
      # Create config at default location
      chat-archive init-config

    \b
      # Point at a copy of the chat database
      chat-archive init-config --chat-db ~/backup/chat.db

    \b
      # Overwrite existing config
      chat-archive init-config --force
    """
    # Determine output path
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    # Check if file already exists
    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(1)

    config = Config(config_path=config_path)
    if chat_db is not None:
        config.chat_db = chat_db.expanduser().resolve()
    if contacts_db is not None:
        config.contacts_db = contacts_db.expanduser().resolve()

    try:
        save_config(config, config_path)
        config_path.chmod(0o600)
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1)

    success(f"Created config file: {config_path}")
    info("Edit this file to customize your settings.")
