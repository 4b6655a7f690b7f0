"""
Domain errors raised by services.

Each error carries the HTTP status it maps to; the handlers registered in
app.main render them with the standard error envelope.
"""


class AppError(Exception):
    """Base class for errors that reach the client"""
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Validation error"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class DuplicateRegistration(Conflict):
    default_message = "Already paid for this contest"


class AlreadyDecided(Conflict):
    default_message = "Winner already declared for this contest"


class InvalidTransition(Conflict):
    default_message = "Invalid status transition"
