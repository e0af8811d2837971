"""
Structured logging configuration using structlog.

structlog events and standard-library records (uvicorn, httpx and the
upstream client) go through the same renderer: JSON in production,
coloured console output in development.
"""
import logging
import sys
from typing import Any, List

import structlog

# Processors applied to both structlog events and stdlib records
_SHARED_PROCESSORS: List[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def setup_logging(level: str = "INFO", environment: str = "production") -> None:
    """
    Configure structured logging for the service.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: "development" selects the console renderer,
            anything else renders JSON lines
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if environment == "development":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("cache_hit", key="list:0:20")
    """
    return structlog.get_logger(name)


def log_request(
    endpoint: str,
    duration_ms: float,
    cache_status: str | None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """
    Log one handled press-release request.

    Args:
        endpoint: Logical endpoint name (e.g. "get_press_releases")
        duration_ms: Handling time in milliseconds
        cache_status: X-Cache value sent to the caller, None on failure
        error: Error message if the request failed
        **extra: Request parameters (offset, limit, press_release_id, ...)
    """
    logger = get_logger("press_cache.request")
    fields = {
        "endpoint": endpoint,
        "duration_ms": round(duration_ms, 2),
        "cache_status": cache_status,
        **extra,
    }

    if error:
        logger.error("request_failed", error=error, **fields)
    else:
        logger.info("request_completed", **fields)
