"""
Logging Configuration

Structured logging for the repository layer using structlog.

Every module logs through ``get_logger(__name__)``, so all events live under
the ``repokit`` stdlib logger and can be raised or silenced as one unit
without touching the host application's root level.

Events:
=======
    debug    Cache hit / Cache miss       tag, operation, key
    debug    Criteria applied             criteria
    debug    Search query built           model, words, columns, threshold
    info     Cache invalidated            tag, removed
    info     Record created/updated/...   model, id
    warning  Unknown attributes ignored   model, fields

Log Output:
===========
Development:
    2024-01-15 10:30:00 [debug    ] Cache hit    app=repokit key=users:9f86d0... tag=users

Other environments (JSON):
    {"app": "repokit", "event": "Cache hit", "level": "debug", "tag": "users", ...}

Usage:
======
    from repokit.core.logging import get_logger, log_context, setup_logging

    setup_logging(level="DEBUG")          # show cache hits and misses
    log_context(request_id=request_id)    # added to every following event
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog
from structlog.typing import Processor

from repokit.config.settings import settings

LIBRARY_LOGGER = "repokit"


def add_app_name(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Tag every event with the configured application name."""
    event_dict.setdefault("app", settings.APP_NAME)
    return event_dict


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structlog and the ``repokit`` logger (level and stdout handler).

    Args:
        level: Level name for the library logger (default: LOG_LEVEL)
        json_logs: Render JSON instead of console output (default: every
            environment except development)

    Called automatically when this module is imported.
    """
    if json_logs is None:
        json_logs = not settings.is_development

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    library_logger.setLevel((level or settings.LOG_LEVEL).upper())
    if not any(h.get_name() == LIBRARY_LOGGER for h in library_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(LIBRARY_LOGGER)
        handler.setFormatter(logging.Formatter("%(message)s"))
        library_logger.addHandler(handler)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_app_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Dotted logger name, normally ``__name__`` of a repokit module
    """
    return structlog.get_logger(name or LIBRARY_LOGGER)


def log_context(**kwargs: Any) -> None:
    """
    Bind key-value pairs to every following event in this context.

    Example:
        log_context(request_id="abc-123")
        repo.fetch(page=2)   # cache and record events carry request_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_log_context() -> None:
    """Drop everything bound with log_context()."""
    structlog.contextvars.clear_contextvars()


setup_logging()

logger = get_logger(LIBRARY_LOGGER)
