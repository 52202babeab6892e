"""Exception taxonomy for the client core."""

from dataclasses import dataclass
from typing import Any, Optional

from client.constants import (
    EMAIL_TAKEN_CODES,
    INVALID_CREDENTIAL_CODES,
    SESSION_EXPIRED_CODES,
    USER_NOT_FOUND_CODES,
    USERNAME_TAKEN_CODES,
)


@dataclass(frozen=True)
class NormalizedError:
    """
    Single error shape handed to callers.

    Attributes:
        message: Human readable message
        code: Machine code provided by the backend, if any
        status: Transport status code, if any
        original: The error that was normalized
    """
    message: str
    code: Optional[str] = None
    status: Optional[int] = None
    original: Any = None


class ClientError(Exception):
    """
    Base exception class for all client core errors.
    """

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
        field: Optional[str] = None,
        normalized: Optional[NormalizedError] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code
        self.status = status
        self.field = field
        self.normalized = normalized or NormalizedError(
            message=message, code=self.code, status=status, original=self
        )


class ValidationError(ClientError):
    """
    Raised when local input validation fails before any network call.
    """
    default_code = 'VALIDATION_ERROR'


class AuthError(ClientError):
    """
    Raised when credentials are invalid or the user does not exist.
    """
    default_code = 'INVALID_CREDENTIALS'


class ConflictError(ClientError):
    """
    Raised when a username or email is already taken.
    """
    default_code = 'CONFLICT'


class SessionExpiredError(ClientError):
    """
    Raised when the credential is missing, invalid or expired.
    """
    default_code = 'SESSION_EXPIRED'


class NotFoundError(ClientError):
    """
    Raised when a requested entity does not exist.
    """
    default_code = 'NOT_FOUND'


class TransportError(ClientError):
    """
    Raised on network failures and timeouts.
    """
    default_code = 'NETWORK_ERROR'


class UnknownError(ClientError):
    """
    Raised when a failure fits no other category.
    """
    default_code = 'UNKNOWN'


TRANSPORT_CODES = frozenset({'NETWORK_ERROR', 'TIMEOUT'})


def error_from_normalized(normalized: NormalizedError) -> ClientError:
    """
    Build the taxonomy exception matching a normalized error.

    Backend codes take precedence over transport status so that a 401 caused by
    bad login credentials is reported as AuthError, not as session expiry.

    Args:
        normalized: Output of normalize()

    Returns:
        ClientError subclass instance carrying the normalized error
    """
    code = normalized.code.upper() if isinstance(normalized.code, str) else None
    status = normalized.status

    if code in INVALID_CREDENTIAL_CODES or code in USER_NOT_FOUND_CODES:
        cls = AuthError
    elif code in USERNAME_TAKEN_CODES or code in EMAIL_TAKEN_CODES:
        cls = ConflictError
    elif code in SESSION_EXPIRED_CODES or status == 401:
        cls = SessionExpiredError
    elif status == 404:
        cls = NotFoundError
    elif status == 409:
        cls = ConflictError
    elif status is None and code in TRANSPORT_CODES:
        cls = TransportError
    else:
        cls = UnknownError

    return cls(
        normalized.message,
        code=normalized.code,
        status=status,
        normalized=normalized,
    )
