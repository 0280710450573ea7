"""Gateway logging config

## Setup

Logging is configured when this module is imported. It uses structlog for structured logging. Logs are pretty-printed
in the local env (GATEWAY_ENVIRONMENT='local') and are JSON-formatted in other envs.

```
from src.utils.logging import get_logger

logger = get_logger(__name__)
logger.info("Webhook queued", shop_domain="shop1.example", topic="orders/create")
```

## Log context

Use LogContext (or add_log_context) to attach request-scoped values such as organization_id or platform to every log
line emitted within the current async context:

```
with LogContext(organization_id="org_1", platform="slack"):
    logger.info("Token exchange succeeded")
```

## Redaction

Credential material must never reach a log sink. Any event key listed in REDACTED_KEYS is replaced with "[REDACTED]"
before rendering, whichever logger emitted it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from typing import Any

import structlog
import structlog.contextvars

from src.utils.config import get_gateway_environment
from src.utils.newrelic_logging import newrelic_error_processor

REDACTED_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "client_secret",
        "authorization",
        "authorization_code",
        "code",
        "shared_secret",
        "signing_secret",
    }
)
REDACTED_VALUE = "[REDACTED]"


def _is_local_environment() -> bool:
    return get_gateway_environment() == "local"


def redact_secrets_processor(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace credential-bearing values in the event dict."""
    for key in event_dict.keys() & REDACTED_KEYS:
        event_dict[key] = REDACTED_VALUE
    return event_dict


def _get_log_renderer() -> structlog.types.Processor:
    """Get the appropriate renderer based on environment.

    Can be overridden with LOG_RENDERER environment variable:
    - 'console': Force ConsoleRenderer (human-readable with colors)
    - 'json': Force JSONRenderer (structured JSON output)
    """
    log_renderer = os.getenv("LOG_RENDERER", "").lower()
    if log_renderer == "console":
        use_console = True
    elif log_renderer == "json":
        use_console = False
    else:
        use_console = _is_local_environment()

    if use_console:
        return structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=0,
            force_colors=False,
            repr_native_str=False,
            exception_formatter=structlog.dev.plain_traceback,
            sort_keys=True,
            event_key="message",
        )
    return structlog.processors.JSONRenderer()


def configure_logging() -> None:
    """Configure structlog with environment-appropriate settings using built-in contextvars.

    Local development: Human-readable console output with colors
    Production: JSON format for New Relic and log aggregation
    """
    common_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.contextvars.merge_contextvars,
        redact_secrets_processor,  # Must come after merge_contextvars
        structlog.processors.EventRenamer("message"),
        newrelic_error_processor,
        structlog.stdlib.filter_by_level,  # Must come after add_log_level
    ]

    structlog.configure(
        processors=common_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # filter_by_level expects a structlog logger, stdlib loggers do their own filtering
    foreign_processors = [p for p in common_processors if p != structlog.stdlib.filter_by_level]
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_get_log_renderer(),
            foreign_pre_chain=foreign_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(stream_handler)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    numeric_log_level = getattr(logging, log_level, logging.INFO)
    root_logger.setLevel(numeric_log_level)

    if numeric_log_level <= logging.DEBUG:
        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            uvicorn_logger = logging.getLogger(logger_name)
            if uvicorn_logger.level > numeric_log_level:
                uvicorn_logger.setLevel(numeric_log_level)

    # httpx logs full request URLs at INFO; keep it quiet unless debugging
    if numeric_log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging()


def add_log_context(**kwargs: Any) -> None:
    """Add values to the logging context for the current async context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def remove_log_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_log_context() -> None:
    """Clear all values from the logging context.

    Useful for ensuring a clean context at the start of a new request.
    """
    structlog.contextvars.clear_contextvars()


LogContext = structlog.contextvars.bound_contextvars


def get_logger(name: str, **kwargs: Any) -> structlog.BoundLogger:
    """Get a logger instance. Wrapper around structlog.get_logger for convenience."""
    return structlog.get_logger(name, **kwargs)


def get_uvicorn_log_config() -> dict[str, Any]:
    """Get Uvicorn logging configuration that matches our structlog format."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": _get_log_renderer(),
                "foreign_pre_chain": [
                    structlog.stdlib.add_log_level,
                    structlog.stdlib.add_logger_name,
                    structlog.processors.TimeStamper(fmt="iso"),
                    structlog.processors.EventRenamer("message"),
                ],
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        },
    }
