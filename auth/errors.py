"""
auth/errors.py -- Typed failures raised by the account service and gates.

Each error carries the HTTP status, a machine-readable code and a human
message. The service layer decides WHAT failed; api/main.py maps every
AuthError onto the shared ErrorResponse envelope in a single handler.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class. Subclasses set status_code and code."""

    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class EmailTakenError(AuthError):
    code = "email_taken"


class EmailNotFoundError(AuthError):
    code = "email_not_found"


class BadCredentialsError(AuthError):
    code = "bad_credentials"


class UserNotFoundError(AuthError):
    code = "user_not_found"


class AccessDeniedError(AuthError):
    code = "access_denied"


class ExpiredLinkError(AuthError):
    status_code = 401
    code = "expired_link"


class ResetTokenNotFoundError(AuthError):
    status_code = 401
    code = "token_not_found"


class DatabaseError(AuthError):
    """A write failed. Status varies by operation, so callers pass it."""

    code = "database_error"


class EmailFailedError(AuthError):
    status_code = 502
    code = "email_failed"


class InvalidFieldError(AuthError):
    """A submitted field broke a rule the request models leave to the service."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
