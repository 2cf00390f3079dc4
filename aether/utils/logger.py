"""
Logging configuration for Aether.

Uses structlog for structured JSON logging suitable for production.
Patient free text never reaches the log stream: events carrying
symptom descriptions, prompts or raw model answers are redacted down
to their length.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog
from structlog.types import Processor

from aether.config import settings

# Event keys whose values may contain patient-supplied or model-generated text
SENSITIVE_KEYS = frozenset({
    "symptoms",
    "patient_data",
    "prompt",
    "question",
    "raw_response",
    "description",
})


def redact_patient_text(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor replacing sensitive text values with their length."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<redacted {len(value)} chars>"
    return event_dict


def configure_logging(
    log_level: Optional[str] = None,
    json_format: bool = True
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (defaults to settings.log_level)
        json_format: JSON lines (True) or coloured console output (False)
    """
    numeric_level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_patient_text,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            # Model answers are full of emoji and non-ASCII prices
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str = "aether") -> structlog.BoundLogger:
    """Structured logger tagged with the emitting component."""
    return structlog.get_logger(name).bind(component=name)


def bind_request_context(**values: Any) -> None:
    """Attach values (user, path) to every event logged during this request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


configure_logging(
    log_level=settings.log_level,
    json_format=not settings.debug
)
