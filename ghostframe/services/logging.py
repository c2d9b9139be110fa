"""
Structured logging for GhostFrame.

Everything is rendered as one JSON object per line. Request-scoped fields
(request id, path) are bound through structlog's contextvars so that log
lines emitted deep inside a module run still carry them.
"""
import logging
import sys
import time
import uuid
from functools import wraps

import structlog

from ghostframe import config

QUIET_LOGGERS = {
    "sqlalchemy": logging.WARNING,
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "multipart": logging.WARNING,
}


def configure_logging():
    """Configure structlog on top of the stdlib logging module"""
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str = None):
    return structlog.get_logger(name)


def log_performance(func_name: str):
    """Log how long a pipeline stage took, and whether it raised."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("performance")
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    "stage_failed",
                    stage=func_name,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            logger.info(
                "stage_completed",
                stage=func_name,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return result
        return wrapper
    return decorator


def bind_request_context(request) -> str:
    """Start a fresh log context for one HTTP request; returns its id."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    return request_id


def log_api_request(request, response=None, error=None):
    """Log the start, completion or failure of an API request"""
    logger = get_logger("api")

    log_data = {
        "method": request.method,
        "query": str(request.url.query) or None,
        "client_ip": request.client.host if request.client else "unknown",
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    if response is not None:
        log_data.update({
            "status_code": response.status_code,
            "response_time": response.headers.get("X-Process-Time"),
        })
        logger.info("api_request_completed", **log_data)
    elif error is not None:
        log_data.update({
            "error": str(error),
            "status_code": getattr(error, "status_code", 500),
        })
        logger.error("api_request_failed", **log_data)
    else:
        logger.info("api_request_started", **log_data)
