"""structlog configuration for lumina.

Everything logs to stderr: colored console lines by default, JSON lines
with ``--log-json``.  stdout belongs to command output and, under
``host serve``, to bridge frames.

A spawned host inherits the client's stderr, so every record carries a
``process`` field (``cli`` or ``host``) telling the two apart.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

HANDLER_NAME = "lumina-stderr"

# Request-level chatter from the Ollama and web clients.
QUIET_LOGGERS = ("httpx", "httpcore")


def _tag_process(name: str) -> structlog.types.Processor:
    def processor(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> Any:
        event_dict.setdefault("process", name)
        return event_dict

    return processor


def _stderr_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    process: str = "cli",
) -> None:
    """Route lumina and library logging to stderr through structlog.

    Safe to call again, e.g. when ``host serve`` relabels the process: the
    previous lumina handler is replaced and other root handlers are kept.

    Args:
        verbose: DEBUG for ``lumina.*`` loggers; WARNING otherwise.
        log_json: JSON lines instead of console lines.
        process: Value of the ``process`` field on every record.
    """
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _tag_process(process),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if log_json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if h.get_name() != HANDLER_NAME]
    root.addHandler(_stderr_handler(formatter))
    root.setLevel(logging.WARNING)

    logging.getLogger("lumina").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
