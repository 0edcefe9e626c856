"""structlog configuration shared by the UI and background processes.

Both processes write to stderr: console rendering by default, JSON lines
with ``--log-json``. Every record carries a ``process`` field (``ui`` or
``background``) so interleaved output stays readable. The child process
runs :func:`configure_logging` itself on startup; logging state is not
inherited across a spawn.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

APP_LOGGER = "wavetimer"


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    process_name: str = "ui",
) -> None:
    """Install a single stderr handler rendering through structlog.

    Args:
        verbose: ``wavetimer`` loggers at DEBUG instead of WARNING.
        log_json: JSON renderer instead of the console renderer.
        process_name: Value of the ``process`` field on every record.
    """

    def add_process(_logger: object, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("process", process_name)
        return event_dict

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_process,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    render_chain: list[structlog.types.Processor]
    if log_json:
        render_chain = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render_chain = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

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
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render_chain],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    # SQLAlchemy echoes every statement at INFO when its logger is enabled.
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
