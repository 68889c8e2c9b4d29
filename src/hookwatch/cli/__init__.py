"""Hookwatch CLI -- read-only inspection of tracked hooks.

This module is NEVER imported from hookwatch/__init__.py.
It is only loaded via the ``hookwatch`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install hookwatch[cli]"
    ) from None

from hookwatch.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from hookwatch.storage.sqlite import SqlStorage


@click.group()
@click.option(
    "--db",
    default="hookwatch.db",
    envvar="HOOKWATCH_DB_PATH",
    help="Path to the hook database.",
)
@click.option(
    "--log-level",
    default="WARNING",
    envvar="HOOKWATCH_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level.",
)
@click.pass_context
def cli(ctx: click.Context, db: str, log_level: str) -> None:
    """Hookwatch: find webhooks that stopped delivering events."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db


@contextmanager
def _storage_session(ctx: click.Context) -> Iterator[tuple[SqlStorage, Console]]:
    """Open the database, yield (storage, console), and handle cleanup.

    Formats exceptions as CLI errors and exits with status 1.
    """
    from hookwatch.storage.sqlite import SqlStorage

    console = get_console()
    db_path = ctx.obj["db_path"]
    if db_path != ":memory:" and not os.path.exists(db_path):
        format_error(f"Database not found: {db_path}", console)
        raise SystemExit(1)
    try:
        storage = SqlStorage.open(db_path)
        try:
            yield storage, console
        finally:
            storage.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from hookwatch.cli.commands.incorrect import incorrect  # noqa: E402
from hookwatch.cli.commands.list_hooks import list_hooks  # noqa: E402
from hookwatch.cli.commands.show import show  # noqa: E402

cli.add_command(incorrect)
cli.add_command(list_hooks)
cli.add_command(show)
