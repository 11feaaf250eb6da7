"""Structured logging setup built on structlog.

Console rendering for development, JSON lines for production. Request
handlers bind ``request_id`` and ``caller_id`` into the context so every
event logged while serving a request carries them. Contact email addresses
are masked before rendering.
"""

import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from guestlist.config import Settings, get_settings

NOISY_LOGGERS = ("httpcore", "httpx", "uvicorn.access", "multipart", "asyncio")

_EMAIL_KEYS = frozenset({"email", "owner_email"})


def mask_email(value: str) -> str:
    """``jane.doe@acme.io`` -> ``j***@acme.io``."""
    local, sep, domain = value.partition("@")
    if not sep:
        return value
    return f"{local[:1]}***@{domain}"


def _mask_emails(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in list(event_dict.items()):
        if key in _EMAIL_KEYS and isinstance(value, str):
            event_dict[key] = mask_email(value)
        elif key == "context" and isinstance(value, Mapping):
            event_dict[key] = {
                k: mask_email(v) if k in _EMAIL_KEYS and isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["environment"] = settings.environment.value
    return event_dict


def build_processors(log_format: str) -> list[Processor]:
    """Processor chain for ``"json"`` or ``"console"`` output."""
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _mask_emails,
    ]
    if log_format == "json":
        return [
            *shared,
            _add_app_context,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        *shared,
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Call once at startup (the API lifespan does this).
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.value)

    structlog.configure(
        processors=build_processors(settings.log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_file:
        _add_file_handler(settings.log_file, level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def _add_file_handler(log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger; use ``get_logger(__name__)`` per module."""
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
