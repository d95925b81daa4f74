"""Delivery commands: phase switches and delivered flags.

``deliver``/``undeliver`` switch to the delivery phase first whenever at
least one package is loaded, so a finished route can still be un-delivered
from a fresh process or shell session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flexrunner.commands._base import FlexCommand
from flexrunner.domain.types import Phase

if TYPE_CHECKING:
    from flexrunner.commands._context import AppContext


def _ensure_delivering(app: AppContext) -> bool:
    """Enter the delivery phase if needed; False if that failed."""
    store = app.store
    if store.model.phase is Phase.DELIVERING:
        return True
    started = store.start_delivery(require_pending=False)
    if not started.ok:
        app.emit(started)
        return False
    return True


@click.command(cls=FlexCommand)
@click.pass_obj
def start(app: AppContext) -> None:
    """Switch to delivery mode (needs at least one loaded package)."""
    app.emit(app.store.start_delivery())


@click.command(cls=FlexCommand)
@click.pass_obj
def back(app: AppContext) -> None:
    """Return to loading mode."""
    app.emit(app.store.back_to_assign())


@click.command(
    cls=FlexCommand,
    examples="""\
  flexrunner deliver 12
  flexrunner deliver 12 --toggle""",
)
@click.argument("number")
@click.option("--toggle", is_flag=True, help="Flip the flag instead of setting it.")
@click.pass_obj
def deliver(app: AppContext, number: str, toggle: bool) -> None:
    """Mark package NUMBER delivered."""
    if not _ensure_delivering(app):
        return
    store = app.store
    app.emit(store.toggle_delivered(number) if toggle else store.set_delivered(number, True))


@click.command(cls=FlexCommand, examples="  flexrunner undeliver 12")
@click.argument("number")
@click.pass_obj
def undeliver(app: AppContext, number: str) -> None:
    """Mark package NUMBER not delivered."""
    if not _ensure_delivering(app):
        return
    app.emit(app.store.set_delivered(number, False))


@click.command("reset-progress", cls=FlexCommand)
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def reset_progress(app: AppContext, yes: bool) -> None:
    """Mark every package undelivered."""
    if not yes and not click.confirm(
        "Reset delivery progress? All packages will be marked as undelivered.", err=True
    ):
        return
    app.emit(app.store.reset_progress())
