"""Tests for output mode dispatch."""

from __future__ import annotations

import json

from flexrunner.output.console import create_console, get_output, style_for_zone
from flexrunner.output.formatters import OutputSettings, format_result
from flexrunner.services.result import ServiceResult

RESULT = ServiceResult(
    ok=True,
    op="assign",
    data={"numbers": ["1"], "zone": "trunk", "zone_name": "Trunk", "count": 1},
)


class TestFormatResult:
    def test_json(self) -> None:
        payload = json.loads(format_result(RESULT, settings=OutputSettings(json_output=True)))
        assert payload["ok"] is True
        assert payload["data"]["zone"] == "trunk"

    def test_quiet(self) -> None:
        assert format_result(RESULT, settings=OutputSettings(quiet=True)) == "OK: assign"

    def test_default_is_rich(self) -> None:
        assert "1 → Trunk" in format_result(RESULT)


class TestConsole:
    def test_buffered_output(self) -> None:
        console = create_console(no_color=True, width=40)
        console.print("[fr.zone.trunk]Trunk[/]")
        assert get_output(console) == "Trunk\n"

    def test_zone_style_name(self) -> None:
        assert style_for_zone("backmid") == "fr.zone.backmid"
