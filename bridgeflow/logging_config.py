"""
Structured logging for bridgeflow.

Every module logs through ``logging.getLogger(__name__)``; ``setup_logging``
routes those records through structlog so that context bound with
``transfer_context`` (attempt id, chains, plan) is attached to each line.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog

from .config import settings

NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


def _add_service(_: Any, __: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", "bridgeflow")
    return event_dict


def _renderer(level: int, log_format: str) -> Any:
    fmt = (log_format or "auto").lower()
    if fmt == "console" or (fmt == "auto" and level == logging.DEBUG):
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the structlog formatter on the root logger.

    Args:
        log_level: Override log level (default: settings.log_level)
        log_format: "json", "console" or "auto" (console at DEBUG, JSON otherwise)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    renderer = _renderer(level, log_format or settings.log_format)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def transfer_context(**values: Any) -> Iterator[None]:
    """Bind transfer fields (attempt_id, source_chain, ...) to every log line in scope."""
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield
