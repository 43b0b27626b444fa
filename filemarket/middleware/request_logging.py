import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("filemarket.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response
