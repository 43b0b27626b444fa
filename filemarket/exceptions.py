"""Domain errors raised by routers and services.

Each error carries the HTTP status it maps to; the handlers in
``filemarket.middleware.error_handlers`` turn them into the error envelope.
"""


class AppError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request data"


class InvalidState(AppError):
    status_code = 400
    default_message = "Operation not allowed in the current state"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentials(Unauthenticated):
    default_message = "Invalid credentials"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Resource already exists"
