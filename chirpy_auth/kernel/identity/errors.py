"""
Typed failures raised by the identity kernel.

Every failure carries an ErrorKind so callers can branch on the kind without
parsing messages. Mapping kinds to HTTP statuses is the caller's job.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure kinds surfaced by the identity kernel."""
    MALFORMED = "malformed"
    NOT_PRESENT = "not_present"
    UNAUTHENTICATED = "unauthenticated"
    EXPIRED = "expired"
    REVOKED = "revoked"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class AuthError(Exception):
    """Base class for identity kernel failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, detail: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    @property
    def error_code(self) -> str:
        return self.kind.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class MalformedError(AuthError):
    """Input could not be parsed (header shape, hash encoding, token claims)."""
    kind = ErrorKind.MALFORMED


class NotPresentError(AuthError):
    """An expected credential was missing entirely."""
    kind = ErrorKind.NOT_PRESENT


class UnauthenticatedError(AuthError):
    """Signature, password or API key mismatch."""
    kind = ErrorKind.UNAUTHENTICATED


class ExpiredError(AuthError):
    """Token is past its expiry."""
    kind = ErrorKind.EXPIRED


class RevokedError(AuthError):
    """Refresh token was explicitly revoked."""
    kind = ErrorKind.REVOKED


class NotFoundError(AuthError):
    """No stored record matches the presented value."""
    kind = ErrorKind.NOT_FOUND


class InternalError(AuthError):
    """Random source or store failure unrelated to the caller's input."""
    kind = ErrorKind.INTERNAL


__all__ = [
    "ErrorKind",
    "AuthError",
    "MalformedError",
    "NotPresentError",
    "UnauthenticatedError",
    "ExpiredError",
    "RevokedError",
    "NotFoundError",
    "InternalError",
]
