"""Subcommand modules for flexrunner.

Provides register_commands() which imports command modules only when the
CLI is built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register every command on the root CLI group."""
    from flexrunner.commands.backup import export, import_cmd
    from flexrunner.commands.delivery import back, deliver, reset_progress, start, undeliver
    from flexrunner.commands.manage import guide, range_cmd, reset, status, theme, undo
    from flexrunner.commands.packages import (
        assign,
        clear_selection,
        deselect,
        remove,
        select,
        summary,
        toggle,
    )
    from flexrunner.commands.shell import shell

    for command in (
        status,
        summary,
        select,
        toggle,
        deselect,
        clear_selection,
        assign,
        remove,
        start,
        back,
        deliver,
        undeliver,
        reset_progress,
        undo,
        reset,
        range_cmd,
        theme,
        export,
        import_cmd,
        guide,
        shell,
    ):
        cli.add_command(command)
