"""Global exception handlers.

Every failure leaves the API as ``{"status": "error", "message": ...}`` with
the status code of its kind. Unexpected exceptions are logged with their
traceback and answered with a generic 500 message.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from filemarket.exceptions import AppError
from filemarket.utils.responses import error

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_app_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_app_error_handler(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        else:
            logger.info(
                f"{type(exc).__name__} on {request.url.path}: {exc.message}"
            )
        return JSONResponse(
            status_code=exc.status_code, content=error(exc.message),
        )


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error(
                "Invalid request data",
                errors=[
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                    }
                    for e in exc.errors()
                ],
            ),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all, never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error("An unexpected error occurred"),
        )
