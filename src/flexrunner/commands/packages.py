"""Loading commands: selection, zone assignment, removal, load summary."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flexrunner.commands._base import FlexCommand
from flexrunner.domain.types import Zone

if TYPE_CHECKING:
    from flexrunner.commands._context import AppContext

_ZONE_CHOICE = click.Choice([z.value for z in Zone], case_sensitive=False)


@click.command(
    cls=FlexCommand,
    examples="""\
  flexrunner select 4 7 12
  flexrunner select 07""",
)
@click.argument("numbers", nargs=-1, required=True)
@click.pass_obj
def select(app: AppContext, numbers: tuple[str, ...]) -> None:
    """Add package NUMBERS to the selection (quick entry)."""
    app.emit(app.store.select(numbers))


@click.command(cls=FlexCommand, examples="  flexrunner toggle 12")
@click.argument("number")
@click.pass_obj
def toggle(app: AppContext, number: str) -> None:
    """Select NUMBER, or deselect it if already selected."""
    app.emit(app.store.toggle_selection(number))


@click.command(cls=FlexCommand, examples="  flexrunner deselect 12")
@click.argument("number")
@click.pass_obj
def deselect(app: AppContext, number: str) -> None:
    """Drop NUMBER from the selection."""
    app.emit(app.store.deselect(number))


@click.command("clear-selection", cls=FlexCommand)
@click.pass_obj
def clear_selection(app: AppContext) -> None:
    """Empty the selection."""
    app.emit(app.store.clear_selection())


@click.command(
    cls=FlexCommand,
    examples="""\
  flexrunner assign --zone trunk
  flexrunner assign 1 2 3 --zone backleft""",
)
@click.argument("numbers", nargs=-1)
@click.option("-z", "--zone", required=True, type=_ZONE_CHOICE, help="Zone to load into.")
@click.pass_obj
def assign(app: AppContext, numbers: tuple[str, ...], zone: str) -> None:
    """Load NUMBERS (default: the selection) into a zone."""
    app.emit(app.store.assign(zone.lower(), list(numbers) if numbers else None))


@click.command(cls=FlexCommand, examples="  flexrunner remove 12")
@click.argument("number")
@click.pass_obj
def remove(app: AppContext, number: str) -> None:
    """Unload package NUMBER from its zone."""
    app.emit(app.store.remove(number))


@click.command(cls=FlexCommand)
@click.pass_obj
def summary(app: AppContext) -> None:
    """Show pending packages grouped by zone."""
    app.emit(app.store.summary())
