"""
Domain errors.

Services raise these; app.main turns them into JSON responses of the form
{"detail": <message>, "error": <code>}.
"""

from typing import List, Optional


class MarketplaceError(Exception):
    status_code = 500
    error = "server_error"
    message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.error}


class NotFound(MarketplaceError):
    status_code = 404
    error = "not_found"
    message = "Resource not found"


class Forbidden(MarketplaceError):
    status_code = 403
    error = "forbidden"
    message = "Not authorized to perform this action"


class Conflict(MarketplaceError):
    status_code = 400
    error = "conflict"
    message = "Resource already exists"


class DeadlinePassed(MarketplaceError):
    status_code = 400
    error = "deadline_passed"
    message = "Application deadline has passed"


class InvalidState(MarketplaceError):
    status_code = 400
    error = "invalid_state"
    message = "Operation not allowed in the current state"


class ValidationFailed(MarketplaceError):
    status_code = 400
    error = "validation_failed"
    message = "Validation failed"

    def __init__(self, errors: List[dict], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class StoreUnavailable(MarketplaceError):
    # Never carries diagnostic detail; the cause is logged instead
    status_code = 500
    error = "store_unavailable"
    message = "Service temporarily unavailable"

    def __init__(self):
        super().__init__()


class AuthError(MarketplaceError):
    status_code = 401
    error = "unauthorized"
    message = "Invalid or expired token"
