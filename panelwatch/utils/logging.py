"""Structured logging setup using structlog.

Panelist summaries and payloads carry names and email addresses. Two
processors scrub log output before rendering: credentials (Zoom tokens,
client secrets, webhook auth headers) are always redacted, and email
addresses are masked to ``a***@example.com`` unless disabled.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

_CREDENTIAL_RE = re.compile(
    r"(token|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?(?:bearer\s+|basic\s+)?[\w\-\.]+",
    re.IGNORECASE,
)
_EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+\-])[A-Za-z0-9._%+\-]*@([A-Za-z0-9.\-]+\.[A-Za-z]{2,})\b")

_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def mask_email(text: str) -> str:
    return _EMAIL_RE.sub(r"\1***@\2", text)


def _scrub(value: Any, mask_emails: bool) -> Any:
    if isinstance(value, str):
        value = _CREDENTIAL_RE.sub(r"\1=***REDACTED***", value)
        return mask_email(value) if mask_emails else value
    if isinstance(value, dict):
        return {k: _scrub(v, mask_emails) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_scrub(v, mask_emails) for v in value)
    return value


def scrub_processor(mask_emails: bool = True) -> structlog.types.Processor:
    """Processor redacting credentials and, optionally, panelist emails.

    Nested dicts and lists are walked so full event payloads are covered too.
    """

    def _processor(
        _logger: structlog.types.WrappedLogger,
        _method: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        for key, value in list(event_dict.items()):
            event_dict[key] = _scrub(value, mask_emails)
        return event_dict

    return _processor


def build_processors(mask_emails: bool = True) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        scrub_processor(mask_emails),
    ]


def setup_logging(level: str = "INFO", json_output: bool = False, mask_emails: bool = True) -> None:
    """Configure structlog on top of stdlib logging, rendering to stderr."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if numeric_level <= logging.DEBUG and not mask_emails:
        print(
            "WARNING: DEBUG logging with email masking disabled. Panelist "
            "names and email addresses will appear in logs.",
            file=sys.stderr,
        )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *build_processors(mask_emails),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
