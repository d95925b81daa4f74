"""Terminal bell feedback.

Rings the terminal bell for ``success`` and ``error`` cues, the closest a
terminal gets to the chime and vibration of a phone. Light and medium cues
are silent.
"""

from __future__ import annotations

import sys
from typing import TextIO

import pluggy

hookimpl = pluggy.HookimplMarker("flexrunner")

_PATTERNS: dict[str, str] = {
    "success": "\a",
    "error": "\a\a",
}


class BellPlugin:
    """Writes BEL characters to a stream for audible cues."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @hookimpl
    def feedback(self, style: str) -> None:
        pattern = _PATTERNS.get(style)
        if not pattern:
            return
        stream = self._stream or sys.stderr
        if stream.isatty() or self._stream is not None:
            stream.write(pattern)
            stream.flush()
