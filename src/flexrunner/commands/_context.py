"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to every command via
``@click.pass_obj``. The store is built and loaded lazily so ``--help``
and ``--version`` never touch storage. The interactive shell reuses one
AppContext for every line it runs, which keeps the selection, phase, and
undo history alive between intents.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
import structlog
from sqlalchemy.exc import SQLAlchemyError

from flexrunner.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from flexrunner.config.settings import FlexSettings
    from flexrunner.infrastructure.kvstore import SqliteKeyValueStore
    from flexrunner.services.result import ServiceResult
    from flexrunner.services.store import StateStore

log = structlog.get_logger(__name__)

STORAGE_UNAVAILABLE = "Storage unavailable. Changes will not be saved."

GUIDE_TEXT = """\
FlexRunner helps delivery drivers organize packages into car zones
before starting a route.

  1. Pick a range:      flexrunner range 35   (presets: 20, 35, 50)
  2. Select packages:   flexrunner select 4 7 12
  3. Load a zone:       flexrunner assign --zone trunk
                        (or in one go: flexrunner assign 4 7 12 --zone trunk)
  4. Start delivering:  flexrunner start, then flexrunner deliver 7

Zones: passenger, backleft, backmid, backright, trunk.
Use `flexrunner shell` to keep your selection and undo history between
commands, and `flexrunner export` to back up your data."""


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: FlexSettings) -> None:
        self.settings = settings
        self.interactive = False
        self._store: StateStore | None = None
        self._kv: SqliteKeyValueStore | None = None
        self._notices: list[str] = []

        from flexrunner.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> StateStore:
        """The loaded state store (created on first access)."""
        if self._store is None:
            self._store = self._build_store()
            self._announce_load(self._store.load())
        return self._store

    def _build_store(self) -> StateStore:
        from flexrunner.domain.zones import build_zone_table
        from flexrunner.infrastructure.kvstore import MemoryKeyValueStore
        from flexrunner.infrastructure.persistence import PersistenceGateway
        from flexrunner.plugins.event_bus import EventBus
        from flexrunner.plugins.manager import PluginManager
        from flexrunner.services.store import StateStore

        settings = self.settings
        kv: MemoryKeyValueStore | SqliteKeyValueStore
        if settings.ephemeral:
            kv = MemoryKeyValueStore(quota_bytes=settings.storage.quota_bytes)
        else:
            kv = self._open_sqlite() or MemoryKeyValueStore(
                quota_bytes=settings.storage.quota_bytes
            )

        plugins = PluginManager()
        if settings.feedback.bell:
            from flexrunner.plugins.builtins.bell import BellPlugin

            plugins.register_plugin(BellPlugin(), name="bell")
        plugins.discover_and_load()

        gateway = PersistenceGateway(
            kv,
            key_version=settings.storage.key_version,
            default_range=settings.route.default_range,
        )
        return StateStore(
            gateway,
            events=EventBus(plugins, feedback_enabled=settings.feedback.enabled),
            zones=build_zone_table(settings.zones.labels),
            range_presets=settings.route.range_presets,
            default_range=settings.route.default_range,
            max_range=settings.route.max_range,
        )

    def _open_sqlite(self) -> SqliteKeyValueStore | None:
        """Open the database under ``data_root``; None if the directory is unusable."""
        from flexrunner.infrastructure.database.engine import init_database
        from flexrunner.infrastructure.kvstore import SqliteKeyValueStore

        root = self.settings.data_root
        try:
            engine = init_database(root)
        except (OSError, SQLAlchemyError) as exc:
            log.warning("storage_unavailable", data_root=str(root), error=str(exc))
            self._notices.append(STORAGE_UNAVAILABLE)
            return None
        self._kv = SqliteKeyValueStore(engine, quota_bytes=self.settings.storage.quota_bytes)
        return self._kv

    def _announce_load(self, result: ServiceResult) -> None:
        """Report load problems and first-run help on stderr; never fatal."""
        for notice in self._notices:
            click.echo(f"WARNING: {notice}", err=True)
        if not result.ok and result.error is not None:
            click.echo(f"WARNING: {result.error.message}", err=True)
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
        quiet = self.settings.quiet or self.settings.json_output
        if result.ok and result.data.get("first_run") and not quiet:
            click.echo(GUIDE_TEXT + "\n", err=True)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output (in JSON mode they are in the payload).
        * Failure: writes to stderr and exits with code 1, except inside
          the interactive shell, where the loop just carries on.
        """
        dark = self._store.model.dark_mode if self._store is not None else True
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
            dark_mode=dark,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            return
        click.echo(output, err=True)
        if not self.interactive:
            raise SystemExit(1)

    def close(self) -> None:
        """Release the database engine, if one was opened."""
        if self._kv is not None:
            self._kv.close()
            self._kv = None
