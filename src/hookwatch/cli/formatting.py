"""Rich formatting helpers for the Hookwatch CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from hookwatch.models.hook import HookRecord


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _last_used(hook: HookRecord) -> str:
    if hook.last_used is None:
        return "never"
    return hook.last_used.strftime("%Y-%m-%d %H:%M")


def format_hook_table(hooks: Sequence[HookRecord], console: Console) -> None:
    """Display hooks as a compact table."""
    if not hooks:
        console.print("[dim]No hooks.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Repository")
    table.add_column("Hook", style="yellow", justify="right")
    table.add_column("Status", style="cyan")
    table.add_column("Correct")
    table.add_column("Last used", style="dim")
    table.add_column("Branches", justify="right", style="green")

    for hook in hooks:
        branches = hook.last_branch_revisions
        table.add_row(
            escape(hook.repository.id),
            str(hook.hook_id) if hook.hook_id is not None else "-",
            hook.status.value,
            "yes" if hook.correct else "[red]no[/red]",
            _last_used(hook),
            str(len(branches)) if branches is not None else "-",
        )

    console.print(table)


def format_hook_detail(hook: HookRecord, console: Console) -> None:
    """Display one hook with its full branch baseline."""
    state = "[green]correct[/green]" if hook.correct else "[red]incorrect[/red]"
    console.print(f"[bold]{escape(hook.repository.id)}[/bold]  {state}")
    console.print(f"  Hook id:   {hook.hook_id if hook.hook_id is not None else '-'}")
    console.print(f"  Status:    [cyan]{hook.status.value}[/cyan]")
    if hook.url:
        console.print(f"  Url:       {escape(hook.url)}")
    if hook.callback_url:
        console.print(f"  Callback:  {escape(hook.callback_url)}")
    console.print(f"  Last used: {_last_used(hook)}")

    branches = hook.last_branch_revisions
    if branches is None:
        console.print("  Branches:  [dim]unknown (baseline on next change)[/dim]")
        return
    console.print(f"  Branches:  {len(branches)}")
    for name in sorted(branches):
        console.print(f"    [green]{escape(name)}[/green] [yellow]{branches[name][:12]}[/yellow]")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {message}", highlight=False)
