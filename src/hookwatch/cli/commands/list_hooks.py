"""hookwatch list -- list every tracked hook."""

from __future__ import annotations

import click

from hookwatch.cli.formatting import format_hook_table


@click.command(name="list")
@click.pass_context
def list_hooks(ctx: click.Context) -> None:
    """Show every tracked hook."""
    from hookwatch.cli import _storage_session

    with _storage_session(ctx) as (storage, console):
        format_hook_table(storage.hooks.list_all(), console)
