"""
core/errors.py -- Domain error taxonomy for the account service.

Every error a component can raise on purpose derives from AccountError and
carries the HTTP status and machine-readable code it maps to. Components raise;
api/main.py owns the single exception handler that renders the
{"error": {"code", "message"}} envelope. Nothing below api/ builds responses.

Layer rule: core/ is the kernel. No imports from api/, auth/, or mail/.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(AccountError):
    """Malformed, missing or mismatched input."""

    status_code = 400
    code = "validation_error"


class AuthenticationError(AccountError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    code = "unauthorized"


class MissingTokenError(AuthenticationError):
    status_code = 401
    code = "unauthorized"


class InvalidTokenError(AuthenticationError):
    # 400 rather than 401: existing clients treat 401 as "log in first" and
    # 400 as "token rejected".
    status_code = 400
    code = "invalid_token"


class ExpiredTokenError(InvalidTokenError):
    code = "token_expired"


class AuthorizationError(AccountError):
    """Authenticated, but the role does not allow the operation."""

    status_code = 403
    code = "forbidden"


class NotFoundError(AccountError):
    status_code = 404
    code = "not_found"


class ConflictError(AccountError):
    status_code = 409
    code = "conflict"


class InternalError(AccountError):
    """Storage or transport failure."""

    status_code = 500
    code = "internal_error"


class MailDeliveryError(InternalError):
    code = "mail_delivery_failed"
