"""Output mode dispatch.

The CLI renders a ServiceResult for humans (Rich) or machines (--json);
``--quiet`` trims human output down to the essentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from flexrunner.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from flexrunner.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    dark_mode: bool = True


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose, dark=settings.dark_mode)
