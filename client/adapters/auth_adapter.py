"""Adapter for signup/login responses: credential and user extraction."""

import time
from dataclasses import dataclass
from typing import Any, Optional

from client.adapters.resolver import Field, as_mapping, key, resolve_fields, to_text
from client.adapters.user_adapter import adapt_user, has_identity
from common.types import UserProfile

TOKEN_FIELD = Field(
    'token',
    (
        key('token'),
        key('access_token'),
        key('accessToken'),
        key('data', 'token'),
        key('data', 'access_token'),
        key('data', 'accessToken'),
        key('result', 'token'),
    ),
    skip_blank=True,
)

USER_PAYLOAD_FIELD = Field(
    'user',
    (key('user'), key('data', 'user'), key('result', 'user'), key('data')),
)

EXPIRY_FIELDS = (
    Field('expires_at', (key('expires_at'), key('expiresAt'), key('data', 'expires_at'), key('data', 'expiresAt'))),
    Field('expires_in', (key('expires_in'), key('expiresIn'), key('data', 'expires_in'), key('data', 'expiresIn'))),
)


@dataclass(frozen=True)
class AuthPayload:
    """
    Credential material found in an auth response.

    Attributes:
        token: Bearer credential, None if the response carried none
        user: Profile, None if the response identified no user
        expires_at: Expiry instant reported beside the token (Unix seconds), if any
    """
    token: Optional[str] = None
    user: Optional[UserProfile] = None
    expires_at: Optional[float] = None


def extract_token(raw: Any) -> Optional[str]:
    """Find the bearer credential under any of its known envelope positions."""
    token = to_text(TOKEN_FIELD.resolve(as_mapping(raw)))
    return token or None


def extract_user(raw: Any) -> Optional[UserProfile]:
    """
    Find the user in an auth response.

    Looks under user, data.user, data and finally the response root. Returns
    None when no candidate carries an id, username or email.
    """
    source = as_mapping(raw)
    candidate = USER_PAYLOAD_FIELD.resolve(source)
    for payload in (candidate, source):
        if isinstance(payload, dict) and has_identity(payload):
            return adapt_user(payload)
    return None


def _expiry_hint(raw: Any, now: float) -> Optional[float]:
    values = resolve_fields(raw, EXPIRY_FIELDS)
    for name, relative in (('expires_at', False), ('expires_in', True)):
        value = values[name]
        if isinstance(value, bool) or value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if relative:
            return now + number
        # Millisecond epochs are scaled down to seconds
        return number / 1000 if number > 1e11 else number
    return None


def adapt_auth_response(raw: Any, now: Optional[float] = None) -> AuthPayload:
    """
    Map a signup or login response to an AuthPayload.

    Never raises; absent parts are None.
    """
    current = time.time() if now is None else now
    return AuthPayload(
        token=extract_token(raw),
        user=extract_user(raw),
        expires_at=_expiry_hint(raw, current),
    )
