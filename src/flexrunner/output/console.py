"""Rich Console factory and themes for flexrunner output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich disables color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

_COMMON = {
    "fr.ok": "bold green",
    "fr.error": "bold red",
    "fr.warning": "bold yellow",
    "fr.op": "bold cyan",
    "fr.key": "dim",
}

DARK_THEME = Theme(
    {
        **_COMMON,
        "fr.number": "white",
        "fr.selected": "bold black on bright_yellow",
        "fr.delivered": "dim strike",
        "fr.zone.passenger": "bright_blue",
        "fr.zone.backleft": "bright_magenta",
        "fr.zone.backmid": "bright_green",
        "fr.zone.backright": "bright_cyan",
        "fr.zone.trunk": "bright_red",
    }
)

LIGHT_THEME = Theme(
    {
        **_COMMON,
        "fr.number": "black",
        "fr.selected": "bold white on blue",
        "fr.delivered": "dim strike",
        "fr.zone.passenger": "blue",
        "fr.zone.backleft": "magenta",
        "fr.zone.backmid": "green",
        "fr.zone.backright": "cyan",
        "fr.zone.trunk": "red",
    }
)


def create_console(
    *,
    dark: bool = True,
    no_color: bool = False,
    width: int | None = None,
) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        dark: Pick the dark theme (the persisted dark-mode flag).
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DARK_THEME if dark else LIGHT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 100,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_zone(zone: str) -> str:
    """Rich style name for a zone id."""
    return f"fr.zone.{zone}"
