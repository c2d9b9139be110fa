"""
Rate limiting middleware using slowapi
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import structlog

from ghostframe import config

logger = structlog.get_logger()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[limit for limit in config.RATE_LIMIT_DEFAULT.split(";") if limit],
    enabled=config.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Log the breach and answer 429"""
    client = request.client.host if request.client else "unknown"
    logger.warning("rate_limit_exceeded", client_ip=client, path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}. Please try again later."},
    )


def ai_generation_limit():
    """Rate limit for AI generation endpoints"""
    return limiter.limit(config.RATE_LIMIT_AI)


def upload_limit():
    """Rate limit for content uploads"""
    return limiter.limit(config.RATE_LIMIT_UPLOAD)


def auth_limit():
    """Rate limit for login and registration"""
    return limiter.limit(config.RATE_LIMIT_AUTH)
