"""Tests for StateStore intents, undo, and persistence."""

from __future__ import annotations

import copy
from typing import Any

import pluggy
import pytest

from flexrunner.domain.types import Phase, Zone
from flexrunner.infrastructure.kvstore import MemoryKeyValueStore
from flexrunner.infrastructure.persistence import PersistenceGateway
from flexrunner.plugins.event_bus import EventBus
from flexrunner.plugins.manager import PluginManager
from flexrunner.services.result import ErrorCode
from flexrunner.services.store import LOAD_MESSAGE, QUOTA_MESSAGE, StateStore
from tests.conftest import deliver, load

hookimpl = pluggy.HookimplMarker("flexrunner")


def _snapshot(store: StateStore) -> tuple[dict[str, Zone], list[str]]:
    return copy.deepcopy(store.model.packages), list(store.model.delivered)


class _Recorder:
    def __init__(self) -> None:
        self.actions: list[tuple[str, dict[str, Any]]] = []
        self.cues: list[str] = []

    @hookimpl
    def post_action(self, op: str, data: dict[str, Any]) -> None:
        self.actions.append((op, data))

    @hookimpl
    def feedback(self, style: str) -> None:
        self.cues.append(style)


class TestLoad:
    def test_first_load(self, store: StateStore) -> None:
        assert store.first_run is True
        assert store.model.packages == {}
        assert store.model.phase is Phase.ASSIGNING

    def test_reload_restores_saved_fields(self, kv: MemoryKeyValueStore) -> None:
        first = StateStore(PersistenceGateway(kv))
        first.load()
        load(first, "trunk", "1", "2")
        first.set_range(20)
        first.toggle_dark_mode()

        second = StateStore(PersistenceGateway(kv))
        result = second.load()
        assert result.ok
        assert result.data["package_count"] == 2
        assert second.first_run is False
        assert second.model.packages == {"1": Zone.TRUNK, "2": Zone.TRUNK}
        assert second.model.package_range == 20
        assert second.model.dark_mode is False
        assert len(second.history) == 0

    def test_corrupted_packages_reset(self) -> None:
        kv = MemoryKeyValueStore({"packages_v10": "[1,2,3]"})
        store = StateStore(PersistenceGateway(kv))
        result = store.load()
        assert result.ok
        assert store.model.packages == {}
        assert result.warnings == ["Invalid packages data, resetting"]

    def test_deeply_nested_json_starts_fresh(self) -> None:
        kv = MemoryKeyValueStore({"packages_v10": "[" * 100_000 + "]" * 100_000})
        store = StateStore(PersistenceGateway(kv))
        result = store.load()
        assert result.error is not None
        assert result.error.code == ErrorCode.LOAD_FAILED
        assert store.model.packages == {}

    def test_invalid_json_starts_fresh(self) -> None:
        kv = MemoryKeyValueStore({"packages_v10": "{", "packageRange_v10": "20"})
        store = StateStore(PersistenceGateway(kv))
        result = store.load()
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.LOAD_FAILED
        assert result.error.message == LOAD_MESSAGE
        assert store.model.packages == {}
        assert store.model.package_range == 50
        # The store stays usable after a failed load.
        load(store, "trunk", "1")


class TestSelection:
    def test_select_and_assign_selection(self, store: StateStore) -> None:
        assert store.select(["3", "5"]).ok
        result = store.assign("backleft")
        assert result.ok
        assert result.data["numbers"] == ["3", "5"]
        assert result.data["zone_name"] == "Back Left"
        assert store.model.selection == []

    def test_select_rejects_loaded_number(self, store: StateStore) -> None:
        load(store, "trunk", "4")
        result = store.select(["4"])
        assert not result.ok
        assert result.error is not None
        assert result.error.message == "#4 already loaded"

    def test_select_is_all_or_nothing(self, store: StateStore) -> None:
        result = store.select(["1", "1"])
        assert not result.ok
        assert result.error is not None
        assert result.error.message == "#1 already added"
        assert store.model.selection == []

    def test_select_out_of_range(self, store: StateStore) -> None:
        store.set_range(20)
        result = store.select(["21"])
        assert result.error is not None
        assert result.error.message == "Must be 1-20"

    def test_toggle_and_deselect(self, store: StateStore) -> None:
        assert store.toggle_selection("7").data["selected"] is True
        assert store.toggle_selection("7").data["selected"] is False
        store.select(["8", "9"])
        assert store.deselect("8").data["removed"] is True
        assert store.deselect("8").data["removed"] is False
        assert store.clear_selection().data["cleared"] == 1
        assert store.model.selection == []

    def test_selection_not_saved(self, store: StateStore, kv: MemoryKeyValueStore) -> None:
        store.select(["1"])
        assert kv.get_item("packages_v10") is None


class TestAssign:
    def test_last_write_wins(self, store: StateStore) -> None:
        load(store, "trunk", "1", "2")
        load(store, "passenger", "2")
        assert store.model.packages == {"1": Zone.TRUNK, "2": Zone.PASSENGER}

    def test_duplicates_in_batch_collapse(self, store: StateStore) -> None:
        result = store.assign("trunk", ["1", "01", 1])
        assert result.data["numbers"] == ["1"]
        assert result.data["count"] == 1

    def test_empty_selection(self, store: StateStore) -> None:
        result = store.assign("trunk")
        assert result.error is not None
        assert result.error.code == ErrorCode.EMPTY_SELECTION

    def test_unknown_zone(self, store: StateStore) -> None:
        result = store.assign("roof", ["1"])
        assert result.error is not None
        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert store.model.packages == {}

    def test_invalid_number_rejects_batch(self, store: StateStore) -> None:
        result = store.assign("trunk", ["1", "99"])
        assert not result.ok
        assert store.model.packages == {}
        assert len(store.history) == 0

    def test_reassign_undelivers(self, store: StateStore) -> None:
        load(store, "trunk", "1", "2")
        deliver(store, "1")
        store.back_to_assign()
        load(store, "trunk", "1")
        assert store.model.delivered == []
        assert store.model.packages["1"] is Zone.TRUNK

    def test_rejected_while_delivering(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        store.start_delivery()
        result = store.assign("trunk", ["2"])
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_PHASE


class TestRemove:
    def test_remove(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        result = store.remove("1")
        assert result.ok
        assert result.data == {"number": "1", "zone": "trunk"}
        assert store.model.packages == {}

    def test_remove_unassigned(self, store: StateStore) -> None:
        result = store.remove("1")
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_ASSIGNED

    def test_remove_keeps_delivered_entry(self, store: StateStore) -> None:
        load(store, "trunk", "1", "2")
        deliver(store, "1")
        store.remove("1")
        assert store.model.delivered == ["1"]


class TestDelivery:
    def test_start_requires_pending(self, store: StateStore) -> None:
        result = store.start_delivery()
        assert result.error is not None
        assert result.error.message == "No packages loaded"
        assert store.model.phase is Phase.ASSIGNING

    def test_enter_without_pending(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        deliver(store, "1")
        store.back_to_assign()
        assert not store.start_delivery().ok
        result = store.start_delivery(require_pending=False)
        assert result.ok
        assert result.data["pending"] == 0
        assert store.model.phase is Phase.DELIVERING

    def test_enter_without_packages_fails(self, store: StateStore) -> None:
        result = store.start_delivery(require_pending=False)
        assert result.error is not None
        assert result.error.message == "No packages loaded"

    def test_start_clears_selection(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        store.select(["2"])
        store.start_delivery()
        assert store.model.selection == []
        assert store.model.phase is Phase.DELIVERING

    def test_deliver_and_remaining(self, store: StateStore) -> None:
        load(store, "trunk", "1", "2")
        store.start_delivery()
        result = store.set_delivered("2", True)
        assert result.data["remaining"] == 1
        assert store.model.delivered == ["2"]

    def test_deliver_is_idempotent(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        deliver(store, "1")
        result = store.set_delivered("1", True)
        assert result.ok
        assert result.data["changed"] is False
        assert len(store.history) == 2

    def test_deliver_unassigned(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        store.start_delivery()
        result = store.set_delivered("5", True)
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_ASSIGNED

    def test_deliver_requires_phase(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        result = store.set_delivered("1", True)
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_PHASE

    def test_toggle_delivered(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        store.start_delivery()
        assert store.toggle_delivered("1").op == "deliver"
        assert store.toggle_delivered("1").op == "undeliver"
        assert store.model.delivered == []

    def test_all_done_and_reset_progress(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        deliver(store, "1")
        assert store.status().data["all_done"] is True
        assert store.reset_progress().data["cleared"] == 1
        assert store.model.delivered == []
        assert store.model.packages == {"1": Zone.TRUNK}


class TestUndo:
    def test_batch_scenario(self, store: StateStore) -> None:
        store.set_range(20)
        store.assign("trunk", ["1", "2", "3"])
        store.assign("passenger", ["2"])
        assert store.undo().data["undone"] == "assign"
        assert store.model.packages == {"1": Zone.TRUNK, "2": Zone.TRUNK, "3": Zone.TRUNK}
        store.undo()
        assert store.model.packages == {}
        assert store.model.delivered == []

    def test_empty_history_is_noop(self, store: StateStore) -> None:
        result = store.undo()
        assert result.ok
        assert result.data == {"undone": None}

    @pytest.mark.parametrize(
        ("phase", "action"),
        [
            (Phase.ASSIGNING, lambda s: s.assign("backright", ["1", "3"])),
            (Phase.DELIVERING, lambda s: s.remove("2")),
            (Phase.DELIVERING, lambda s: s.set_delivered("2", True)),
            (Phase.DELIVERING, lambda s: s.set_delivered("1", False)),
        ],
        ids=["assign", "remove", "deliver", "undeliver"],
    )
    def test_exact_inverse(self, store: StateStore, phase: Phase, action: Any) -> None:
        load(store, "trunk", "1", "2", "3")
        deliver(store, "3", "1")
        store.model.phase = phase
        before = _snapshot(store)
        assert action(store).ok
        store.undo()
        assert _snapshot(store) == before

    def test_assign_undo_restores_delivered_order(self, store: StateStore) -> None:
        load(store, "trunk", "1", "2", "3")
        deliver(store, "3", "2", "1")
        store.back_to_assign()
        load(store, "passenger", "2")
        assert store.model.delivered == ["3", "1"]
        store.undo()
        assert store.model.delivered == ["3", "2", "1"]

    def test_reset_clears_history(self, store: StateStore) -> None:
        load(store, "trunk", "1")
        store.reset()
        assert store.model.packages == {}
        assert store.undo().data == {"undone": None}


class TestRange:
    @pytest.mark.parametrize("value", [0, 101, -5, "abc", True, 2.5])
    def test_out_of_bounds_unchanged(self, store: StateStore, value: object) -> None:
        result = store.set_range(value)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert store.model.package_range == 50

    def test_drops_selection_above_range(self, store: StateStore) -> None:
        store.select(["5", "40"])
        result = store.set_range(20)
        assert result.data == {"package_range": 20, "dropped_selection": ["40"]}
        assert store.model.selection == ["5"]

    def test_string_value(self, store: StateStore, kv: MemoryKeyValueStore) -> None:
        assert store.set_range("35").ok
        assert kv.get_item("packageRange_v10") == "35"


class TestSaveFailures:
    def test_quota_failure_becomes_warning(self) -> None:
        kv = MemoryKeyValueStore(quota_bytes=60)
        store = StateStore(PersistenceGateway(kv))
        store.load()
        result = store.assign("trunk", ["1"])
        assert result.ok
        assert result.warnings == [QUOTA_MESSAGE]
        assert store.model.packages == {"1": Zone.TRUNK}

    def test_save_reports_code(self) -> None:
        store = StateStore(PersistenceGateway(MemoryKeyValueStore(quota_bytes=1)))
        result = store.save()
        assert result.error is not None
        assert result.error.code == ErrorCode.SAVE_QUOTA_EXCEEDED


class TestEvents:
    def test_hooks_receive_actions_and_cues(self, gateway: PersistenceGateway) -> None:
        pm = PluginManager()
        recorder = _Recorder()
        pm.register_plugin(recorder)
        store = StateStore(gateway, events=EventBus(pm))
        store.load()
        load(store, "trunk", "1")
        store.remove("9")
        assert recorder.actions[0][0] == "assign"
        assert recorder.cues == ["success", "error"]


class TestSnapshots:
    def test_status(self, store: StateStore) -> None:
        load(store, "trunk", "2", "10")
        deliver(store, "10")
        data = store.status().data
        assert data["phase"] == "delivering"
        assert data["total_pending"] == 1
        assert data["total_delivered"] == 1
        assert data["can_undo"] is True
        trunk = next(row for row in data["zones"] if row["zone"] == "trunk")
        assert trunk["packages"] == ["2", "10"]
        assert trunk["delivered"] == ["10"]
        assert trunk["pending"] == 1

    def test_summary_lists_pending_only(self, store: StateStore) -> None:
        load(store, "backmid", "4", "5")
        deliver(store, "4")
        data = store.summary().data
        middle = next(row for row in data["zones"] if row["zone"] == "backmid")
        assert middle["packages"] == ["5"]
        assert data["total_pending"] == 1
