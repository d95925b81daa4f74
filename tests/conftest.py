"""Shared pytest fixtures and test helpers for flexrunner tests."""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from flexrunner.infrastructure.kvstore import MemoryKeyValueStore
from flexrunner.infrastructure.persistence import PersistenceGateway
from flexrunner.services.backup import BackupService
from flexrunner.services.store import StateStore

FIXED_NOW = datetime(2026, 10, 19, 8, 30, 0, 125000, tzinfo=UTC)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def gateway(kv: MemoryKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(kv)


@pytest.fixture
def store(gateway: PersistenceGateway) -> StateStore:
    """Loaded StateStore on empty in-memory storage."""
    s = StateStore(gateway)
    result = s.load()
    assert result.ok, result.error
    return s


@pytest.fixture
def backup(store: StateStore) -> BackupService:
    """BackupService with a frozen clock."""
    return BackupService(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Temporary data directory."""
    return tmp_path


@pytest.fixture
def _isolated_root(data_root: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run the CLI from a temp directory with no config or env overrides.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(data_root)
    for name in ("FLEXRUNNER_CONFIG", "FLEXRUNNER_DATA_ROOT", "FLEXRUNNER_EPHEMERAL"):
        monkeypatch.delenv(name, raising=False)
    yield


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def load(store: StateStore, zone: str, *numbers: str) -> None:
    """Assign *numbers* to *zone*, asserting success."""
    result = store.assign(zone, list(numbers))
    assert result.ok, result.error


def deliver(store: StateStore, *numbers: str) -> None:
    """Enter the delivery phase if needed and mark *numbers* delivered."""
    from flexrunner.domain.types import Phase

    if store.model.phase is not Phase.DELIVERING:
        started = store.start_delivery()
        assert started.ok, started.error
    for number in numbers:
        result = store.set_delivered(number, True)
        assert result.ok, result.error
