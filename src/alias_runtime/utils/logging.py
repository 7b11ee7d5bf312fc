"""Logging configuration utilities."""

import logging
import sys
from typing import Optional

import structlog
from structlog.contextvars import bind_contextvars


SENSITIVE_KEYS = {
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "auth",
    "access_key",
    "accesskey",
    "secret_key",
    "secretkey",
}

REDACTED = "[REDACTED]"


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return key in SENSITIVE_KEYS or any(key.endswith(f"_{s}") for s in SENSITIVE_KEYS)


def _redact_sensitive(_, __, event_dict: dict) -> dict:
    """Redact sensitive fields in the structured log.

    Environment overrides are logged on every launch, so sensitive variable
    names inside an ``environment`` mapping are masked as well.
    """
    for key in list(event_dict.keys()):
        if _is_sensitive(key):
            event_dict[key] = REDACTED
    environment = event_dict.get("environment")
    if isinstance(environment, dict):
        event_dict["environment"] = {
            k: REDACTED if _is_sensitive(k) else v for k, v in environment.items()
        }
    return event_dict


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Configure structured logging.

    Logs go to stderr; stdout belongs to the supervised children.
    """

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )

    # Configure structlog processors
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_sensitive,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_run_context(alias: Optional[str] = None, run_id: Optional[str] = None) -> None:
    """Bind correlation fields for supervisor logs using contextvars."""
    if alias:
        bind_contextvars(selectedAlias=alias)
    if run_id:
        bind_contextvars(runId=run_id)
