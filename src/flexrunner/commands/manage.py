"""State commands: status, undo, reset, range, theme, guide."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flexrunner.commands._base import FlexCommand

if TYPE_CHECKING:
    from flexrunner.commands._context import AppContext


@click.command(cls=FlexCommand)
@click.pass_obj
def status(app: AppContext) -> None:
    """Show zones, counts, and unassigned packages."""
    app.emit(app.store.status())


@click.command(cls=FlexCommand)
@click.pass_obj
def undo(app: AppContext) -> None:
    """Revert the last assign, remove, or delivery change.

    History lives in memory only; use it inside `flexrunner shell`.
    """
    app.emit(app.store.undo())


@click.command(cls=FlexCommand)
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def reset(app: AppContext, yes: bool) -> None:
    """Clear all packages, delivery progress, and history."""
    if not yes and not click.confirm("Clear all packages? This cannot be undone.", err=True):
        return
    app.emit(app.store.reset())


@click.command("range", cls=FlexCommand, examples="  flexrunner range 35")
@click.argument("value")
@click.pass_obj
def range_cmd(app: AppContext, value: str) -> None:
    """Set the package range to 1-VALUE."""
    app.emit(app.store.set_range(value))


@click.command(cls=FlexCommand)
@click.pass_obj
def theme(app: AppContext) -> None:
    """Toggle dark/light output."""
    app.emit(app.store.toggle_dark_mode())


@click.command(cls=FlexCommand)
def guide() -> None:
    """Show the getting-started guide."""
    from flexrunner.commands._context import GUIDE_TEXT

    click.echo(GUIDE_TEXT)
