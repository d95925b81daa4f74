"""Log setup for the flexrunner CLI.

Application modules log through structlog or plain ``logging``; both end
up in one stderr handler so diagnostics never mix with command output on
stdout. ``--log-json`` switches the handler to one JSON object per line.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers held at WARNING even under -v.
_QUIET_LOGGERS = ("sqlalchemy", "pluggy")


def _pre_chain() -> list[structlog.types.Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _render_chain(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    # ConsoleRenderer formats exc_info itself.
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler; safe to call again (the handler is replaced).

    ``verbose`` lowers the ``flexrunner`` logger to DEBUG.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("flexrunner").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
