"""
core/errors.py -- Error taxonomy shared by auth/, directory/ and api/.

Every error carries the HTTP status and machine-readable code it maps to, so
the service layer can raise domain errors without importing FastAPI and the
api/ layer can render all of them through one exception handler.

ConflictError deliberately maps to 400 (not 409): a duplicate email is
reported to clients the same way as any other rejected registration field.

Layer rule: core/ is the kernel. No imports from api/, auth/ or directory/.
"""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for every error that is rendered to clients."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.headers = headers


class ValidationError(DirectoryError):
    """Malformed or missing input. The message names the failing field."""

    status_code = 400
    code = "validation_error"


class AuthenticationError(DirectoryError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = 401
    code = "unauthorized"


class AuthorizationError(DirectoryError):
    """Valid identity with insufficient role or ownership."""

    status_code = 403
    code = "forbidden"


class NotFoundError(DirectoryError):
    status_code = 404
    code = "not_found"


class ConflictError(DirectoryError):
    """Duplicate email."""

    status_code = 400
    code = "conflict"


class InternalError(DirectoryError):
    """Unexpected store or signing failure. Clients only see a generic message."""

    status_code = 500
    code = "internal_error"
