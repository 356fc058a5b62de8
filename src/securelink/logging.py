"""Structured logging configuration using structlog."""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from structlog.types import Processor

REDACTED = "[REDACTED]"


def redact_secret(secret: str) -> Processor:
    """Build a processor that masks the signing secret in event values.

    Args:
        secret: Value that must never reach the log output.

    Returns:
        structlog processor.
    """

    def processor(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        for key, value in event_dict.items():
            if isinstance(value, str) and secret in value:
                event_dict[key] = value.replace(secret, REDACTED)
        return event_dict

    return processor


def configure_logging(debug: bool = False, secret: str | None = None) -> None:
    """Configure structlog for JSON output.

    Args:
        debug: Enable debug-level logging when True.
        secret: Signing secret to redact from every event.
    """
    level = logging.DEBUG if debug else logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if secret:
        processors.append(redact_secret(secret))
    processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
