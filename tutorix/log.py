"""
Structured logging for tutorix, built on structlog.

    from tutorix.log import configure_logging, get_logger

    configure_logging(level="DEBUG", fmt="console")
    logger = get_logger("cache")
    logger.info("cache hit", key="batch:c1:list")

Until `configure_logging` is called structlog's defaults apply, so library
code can log unconditionally.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.contextvars import merge_contextvars
from structlog.typing import Processor

type LogFormat = Literal["console", "json"]


def _shared_processors(service_name: str) -> list[Processor]:
    def add_service(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return [
        merge_contextvars,
        add_service,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]


def configure_logging(
    level: str = "INFO",
    fmt: LogFormat = "console",
    service_name: str = "tutorix",
) -> None:
    """
    Configure structlog over the standard library logging module.

    Args:
        level: Minimum level name ("DEBUG", "INFO", ...)
        fmt: "json" for machine-readable lines, "console" for development
        service_name: Value bound to the `service` field of every event
    """
    processors = _shared_processors(service_name)
    if fmt == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """
    Return a structlog logger, bound to `logger_name` when given.

    Stays a lazy proxy until first use, so module-level loggers pick up
    a later configure_logging call.
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


__all__ = (
    "LogFormat",
    "configure_logging",
    "get_logger",
)
