"""Structured logging setup using structlog.

Uses a dual-renderer setup: one shared processor chain (context vars, log
level, timestamps, stack info) feeds either a coloured ConsoleRenderer for
local development or a JSONRenderer for production.  The renderer follows
the ``APP_ENV`` environment variable (default ``"development"``) unless
``json_output`` forces JSON.

Every event is stamped with ``service="zeb-ai"`` and passes through
:func:`redact_secrets`, which masks credential fields and API keys echoed in
provider error messages (``Bearer ...``, ``?key=...``).

Standard-library ``logging`` is routed through the same formatter so that
httpx, uvicorn and aiosqlite output matches the application's own events.
"""

import logging
import os
import re
import sys
from typing import Any

import structlog

SERVICE_NAME = "zeb-ai"
REDACTED = "[REDACTED]"

# Field names whose values are never written to the log.
_SECRET_FIELDS = re.compile(r"(api_?key|authorization|password|secret|token)$", re.IGNORECASE)
# Credentials that provider SDKs and httpx echo inside error messages.
_INLINE_SECRETS = re.compile(r"(Bearer\s+|x-goog-api-key[=:]\s*|[?&]key=)[^\s&\"']+", re.IGNORECASE)


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential fields and inline API keys in string values."""
    for key, value in event_dict.items():
        if _SECRET_FIELDS.search(key) and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = _INLINE_SECRETS.sub(lambda m: m.group(1) + REDACTED, value)
    return event_dict


def add_service_name(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output.  When False, console rendering is
                     used unless APP_ENV is "production".

    Returns:
        A configured structlog BoundLogger.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"

    # contextvars first so request-scoped bindings (request_id) reach every event.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_name,
        # Must stay last before the renderer.
        redact_secrets,
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # aiosqlite logs every statement at DEBUG.
    logging.getLogger("aiosqlite").setLevel(max(logging.INFO, root_logger.level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger.

    If structlog has not been configured yet, calls configure_logging() with defaults.

    Args:
        name: Logger name, typically the module name.

    Returns:
        A structlog BoundLogger bound with the given name.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
