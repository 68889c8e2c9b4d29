"""hookwatch show -- show one hook record."""

from __future__ import annotations

import click

from hookwatch.cli.formatting import format_error, format_hook_detail


@click.command()
@click.argument("repository")
@click.pass_context
def show(ctx: click.Context, repository: str) -> None:
    """Show the hook for REPOSITORY (clone url or host/owner/name)."""
    from hookwatch.cli import _storage_session
    from hookwatch.models.repository import RepositoryInfo

    with _storage_session(ctx) as (storage, console):
        info = RepositoryInfo.parse(repository)
        if info is None:
            try:
                info = RepositoryInfo.from_id(repository)
            except ValueError:
                format_error(f"Not a repository: {repository}", console)
                raise SystemExit(1) from None
        hook = storage.hooks.get(info)
        if hook is None:
            format_error(f"No hook tracked for {info}", console)
            raise SystemExit(1)
        format_hook_detail(hook, console)
