"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers
are dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from flexrunner.output.console import create_console, get_output, style_for_zone

if TYPE_CHECKING:
    from rich.console import Console

    from flexrunner.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console"], None]

_GRID_COLUMNS = 10


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False, dark: bool = True) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console(dark=dark)
    if result.ok:
        _OP_RENDERERS.get(result.op, _render_generic)(result, console)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "export":
        return str(result.data["document"])
    if result.op == "export_file":
        return str(result.data["path"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult, message: str | None = None) -> None:
    line = Text("OK", style="fr.ok")
    line.append(f"  {result.op}", style="fr.op")
    if message:
        line.append(f"  {message}")
    console.print(line)


def _field(console: Console, key: str, value: Any) -> None:
    line = Text(f"  {key}: ", style="fr.key")
    line.append(str(value))
    console.print(line)


def _numbers_text(numbers: list[str], *, delivered: list[str] | None = None) -> Text:
    text = Text()
    done = set(delivered or ())
    for i, num in enumerate(numbers):
        if i:
            text.append(" ")
        text.append(f"#{num}", style="fr.delivered" if num in done else "fr.number")
    return text


def _grid(console: Console, numbers: list[str], selection: list[str]) -> None:
    """Unassigned numbers laid out like the sticker grid."""
    chosen = set(selection)
    for start in range(0, len(numbers), _GRID_COLUMNS):
        row = Text("  ")
        for num in numbers[start : start + _GRID_COLUMNS]:
            style = "fr.selected" if num in chosen else "fr.number"
            row.append(f"{num:>3}", style=style)
            row.append(" ")
        console.print(row)


# ── Error ─────────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    error = result.error
    line = Text("ERROR", style="fr.error")
    line.append(f"  {result.op}", style="fr.op")
    line.append(f"  {error.message if error else 'Unknown error'}")
    console.print(line)
    if error is not None and verbose:
        _field(console, "code", error.code)
        for key, value in error.detail.items():
            _field(console, key, value)


# ── Per-op renderers ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_status(result: ServiceResult, console: Console) -> None:
    data = result.data
    delivering = data["phase"] == "delivering"
    title = "Delivering" if delivering else "Loading"
    header = Text(title, style="fr.op")
    header.append(f"  range 1–{data['package_range']}", style="fr.key")
    header.append(
        f"  {data['total_pending']} pending · {data['total_delivered']} delivered", style="fr.key"
    )
    console.print(header)

    if delivering and data["all_done"]:
        console.print(Text("  All packages delivered!", style="fr.ok"))

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Zone")
    table.add_column("Left" if delivering else "Count", justify="right")
    table.add_column("Packages")
    for zone in data["zones"]:
        if delivering and not zone["packages"]:
            continue
        table.add_row(
            Text(zone["name"], style=style_for_zone(zone["zone"])),
            str(zone["pending"]),
            _numbers_text(zone["packages"], delivered=zone["delivered"]),
        )
    console.print(table)

    if not delivering:
        if data["unassigned"]:
            console.print(Text("Unassigned", style="fr.key"))
            _grid(console, data["unassigned"], data["selection"])
        elif data["total_pending"]:
            console.print(Text("  All packages loaded!", style="fr.ok"))
        if data["selection"]:
            selection = data["selection"]
            label = f"{len(selection)} packages" if len(selection) > 1 else f"#{selection[0]}"
            console.print(Text(f"Load {label} into a zone", style="fr.warning"))


def _render_summary(result: ServiceResult, console: Console) -> None:
    console.print(Text(f"Load Summary  {result.data['total_pending']} pending", style="fr.op"))
    for zone in result.data["zones"]:
        line = Text(f"  {zone['name']}", style=style_for_zone(zone["zone"]))
        line.append(f" ({len(zone['packages'])}): ", style="fr.key")
        if zone["packages"]:
            line.append_text(_numbers_text(zone["packages"]))
        else:
            line.append("Empty", style="fr.key")
        console.print(line)


def _render_assign(result: ServiceResult, console: Console) -> None:
    _status_line(console, result, f"{result.data['count']} → {result.data['zone_name']}")


def _render_remove(result: ServiceResult, console: Console) -> None:
    _status_line(console, result, f"Removed #{result.data['number']}")


def _render_delivery(result: ServiceResult, console: Console) -> None:
    data = result.data
    state = "delivered" if data["delivered"] else "not delivered"
    suffix = "" if data["changed"] else " (unchanged)"
    message = f"#{data['number']} {state}{suffix}"
    if "remaining" in data:
        message += f" · {data['remaining']} left"
    _status_line(console, result, message)


def _render_undo(result: ServiceResult, console: Console) -> None:
    undone = result.data["undone"]
    _status_line(console, result, f"Undid {undone}" if undone else "Nothing to undo")


def _render_export(result: ServiceResult, console: Console) -> None:
    console.print(result.data["document"], markup=False, soft_wrap=True)


def _render_export_file(result: ServiceResult, console: Console) -> None:
    _status_line(console, result, "Backup downloaded successfully!")
    _field(console, "path", result.data["path"])
    _field(console, "packages", result.data["package_count"])


def _render_import(result: ServiceResult, console: Console) -> None:
    _status_line(console, result, result.data["message"])
    _field(console, "imported", ", ".join(result.data["imported"]) or "nothing")
    _field(console, "packages", result.data["package_count"])


_OP_RENDERERS: dict[str, Renderer] = {
    "status": _render_status,
    "summary": _render_summary,
    "assign": _render_assign,
    "remove": _render_remove,
    "deliver": _render_delivery,
    "undeliver": _render_delivery,
    "undo": _render_undo,
    "export": _render_export,
    "export_file": _render_export_file,
    "import": _render_import,
}
