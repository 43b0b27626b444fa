"""Per-client request throttling.

One shared ``Limiter`` keyed on the client address. The default limit covers
every route through ``SlowAPIMiddleware``; login, registration, uploads and
payment creation carry tighter ``@limiter.limit`` decorators.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from filemarket.config import settings
from filemarket.utils.responses import error

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Too many requests from this IP, please try again later."
AUTH_MESSAGE = "Too many authentication attempts, please try again later."
UPLOAD_MESSAGE = "Upload limit exceeded, please try again later."
PAYMENT_MESSAGE = "Payment limit exceeded, please try again later."

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    # must stay sync, SlowAPIMiddleware calls it without await
    message = exc.limit.error_message or DEFAULT_MESSAGE
    logger.warning(
        f"Rate limit hit by {get_remote_address(request)} on {request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error(message),
    )


def register_rate_limiting(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    if limiter.enabled:
        logger.info(f"Rate limiting enabled: {settings.rate_limit_default}")
    else:
        logger.info("Rate limiting disabled")
