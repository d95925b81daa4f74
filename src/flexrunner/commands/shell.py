"""Interactive shell: run commands against one live store.

Each line is parsed like a command line and dispatched through the root
CLI group with the shell's own AppContext, so the selection, the phase,
and the undo history carry over from line to line.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

import click

from flexrunner.commands._base import FlexCommand

if TYPE_CHECKING:
    from flexrunner.commands._context import AppContext

_EXIT_WORDS = frozenset({"exit", "quit", "q"})


def run_line(root: click.Command, app: AppContext, line: str) -> bool:
    """Run one shell line. Returns False when the shell should stop."""
    try:
        args = shlex.split(line)
    except ValueError as exc:
        click.echo(f"ERROR: {exc}", err=True)
        return True
    if not args:
        return True
    if args[0] in _EXIT_WORDS:
        return False
    if args[0] == "shell":
        click.echo("Already in the shell.", err=True)
        return True
    try:
        root.main(args, prog_name="flexrunner", obj=app, standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
    except click.Abort:
        click.echo("Aborted.", err=True)
    except SystemExit:
        pass
    return True


@click.command(
    cls=FlexCommand,
    examples="""\
  flexrunner shell
  flexrunner> select 1 2 3
  flexrunner> assign --zone trunk
  flexrunner> undo""",
)
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Start an interactive session (keeps selection and undo history)."""
    app: AppContext = ctx.obj
    app.interactive = True
    root = ctx.find_root().command
    app.emit(app.store.status())
    while True:
        try:
            line = click.prompt(
                "flexrunner", prompt_suffix="> ", default="", show_default=False
            )
        except (EOFError, click.Abort):
            click.echo()
            break
        if not run_line(root, app, line):
            break
