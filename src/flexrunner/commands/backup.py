"""Backup commands: export and import JSON documents."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from flexrunner.commands._base import FlexCommand

if TYPE_CHECKING:
    from flexrunner.commands._context import AppContext


@click.command(
    cls=FlexCommand,
    examples="""\
  flexrunner export
  flexrunner export --output ~/backups/route.json
  flexrunner export --stdout > route.json""",
)
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None, help="Target file.")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the document instead.")
@click.pass_obj
def export(app: AppContext, output: str | None, to_stdout: bool) -> None:
    """Back up packages, delivered, and range to a JSON file."""
    from flexrunner.services.backup import BackupService

    service = BackupService(app.store)
    if to_stdout:
        result = service.export_data()
        if app.settings.json_output:
            app.emit(result)
        else:
            click.echo(result.data["document"])
        return
    app.emit(service.write_backup(Path(output) if output else None))


@click.command(
    "import",
    cls=FlexCommand,
    examples="  flexrunner import flexrunner-backup-2026-10-19.json",
)
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_obj
def import_cmd(app: AppContext, path: str) -> None:
    """Restore data from a backup file written by `export`."""
    from flexrunner.services.backup import BackupService

    app.emit(BackupService(app.store).import_file(Path(path)))
