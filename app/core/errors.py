"""Domain error taxonomy.

Services raise these; ``app.main`` turns them into the
``{"success": false, "message": ...}`` envelope with the matching status code.
"""

from typing import Optional


class DomainError(Exception):
    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Please provide all required fields"


class Unauthenticated(DomainError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(DomainError):
    status_code = 403
    default_message = "Not permitted"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Not found"


class NotFoundOrUnauthorized(NotFoundError):
    """Raised when a row is missing or owned by someone else; the two are not told apart."""

    default_message = "Not found or unauthorized"


class ConflictError(DomainError):
    # The public API reports state-precondition failures as 400.
    status_code = 400
    default_message = "Request conflicts with the current state"


class InternalError(DomainError):
    status_code = 500
    default_message = "Server error"
