"""hookwatch incorrect -- list hooks flagged as out of date."""

from __future__ import annotations

import click

from hookwatch.cli.formatting import format_hook_table


@click.command()
@click.option("--fail", is_flag=True, help="Exit with status 2 if any hook is incorrect.")
@click.pass_context
def incorrect(ctx: click.Context, fail: bool) -> None:
    """Show hooks whose deliveries no longer match observed branches."""
    from hookwatch.cli import _storage_session

    with _storage_session(ctx) as (storage, console):
        hooks = storage.hooks.list_incorrect()
        format_hook_table(hooks, console)
    if fail and hooks:
        raise SystemExit(2)
