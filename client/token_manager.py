"""
Credential lifecycle: claim decoding, expiry checks and persistence.

The client never verifies signatures. Claims are read only to learn when the
credential stops being usable; a credential whose expiry cannot be determined
is treated as expired.
"""

import json
import math
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Union

import jwt
from pydantic import ValidationError as PydanticValidationError

from client.schemas import StoredCredential
from client.storage import KeyValueStore
from common.constants import (
    DEFAULT_TOKEN_EXPIRY_DAYS,
    EXPIRING_SOON_THRESHOLD_SECONDS,
    TOKEN_STORAGE_KEY,
)
from common.logging_config import get_logger
from common.types import Credential

logger = get_logger(__name__)

Clock = Callable[[], float]


def decode_token(token: str) -> Optional[dict]:
    """
    Decode the claims segment of a JWT without verifying it.

    Args:
        token: Bearer credential

    Returns:
        Claims dictionary, or None if the token is not a well-formed JWT
    """
    if not isinstance(token, str) or token.count('.') != 2:
        return None
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        logger.debug(f"Could not decode token claims: {e}")
        return None
    return claims if isinstance(claims, dict) else None


def _exp_claim(token: str) -> Optional[float]:
    claims = decode_token(token)
    if not claims:
        return None
    exp = claims.get('exp')
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


def token_expires_in(token: str, now: Optional[float] = None) -> Optional[int]:
    """
    Seconds until the token's expiry claim, negative once expired.

    Returns:
        Whole seconds remaining, or None if there is no usable expiry claim
    """
    exp = _exp_claim(token)
    if exp is None:
        return None
    current = time.time() if now is None else now
    return math.floor(exp - current)


def is_token_expired(token: str, now: Optional[float] = None) -> bool:
    """
    Check whether a token is expired.

    Unparseable tokens and tokens without an expiry claim count as expired.
    """
    remaining = token_expires_in(token, now)
    if remaining is None:
        logger.warning("Token has no usable expiry claim, treating as expired")
        return True
    if remaining <= 0:
        logger.info(f"Token expired {-remaining}s ago")
        return True
    return False


def is_token_expiring_soon(
    token: str,
    threshold_seconds: int = EXPIRING_SOON_THRESHOLD_SECONDS,
    now: Optional[float] = None,
) -> bool:
    """Check whether the token expires within threshold_seconds (or has no expiry)."""
    remaining = token_expires_in(token, now)
    if remaining is None:
        return True
    return remaining < threshold_seconds


def token_expiry_date(token: str) -> Optional[datetime]:
    """Expiry claim as an aware UTC datetime."""
    exp = _exp_claim(token)
    if exp is None:
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


class TokenManager:
    """
    Persists the credential under a fixed key with its expiry instant.

    Stored value layout: JSON {"token": ..., "expires_at": <unix seconds>}.
    A bare token string written by older builds is still readable.
    """

    def __init__(
        self,
        store: KeyValueStore,
        expiry_days: int = DEFAULT_TOKEN_EXPIRY_DAYS,
        clock: Clock = time.time,
    ):
        self.store = store
        self.expiry_days = expiry_days
        self.clock = clock

    def build_credential(self, token: str, expires_at_hint: Optional[float] = None) -> Credential:
        """
        Resolve the expiry instant of a freshly issued token.

        Order: the JWT exp claim, then a backend-provided hint, then the
        configured default lifetime. A JWT lacking exp gets an expiry of now.

        Args:
            token: Bearer credential
            expires_at_hint: Expiry instant reported next to the token, if any

        Returns:
            Credential with resolved expiry
        """
        now = self.clock()
        claims = decode_token(token)
        if claims is not None:
            exp = _exp_claim(token)
            return Credential(token=token, expires_at=exp if exp is not None else now)
        if expires_at_hint is not None:
            return Credential(token=token, expires_at=float(expires_at_hint))
        return Credential(token=token, expires_at=now + self.expiry_days * 24 * 60 * 60)

    def encode(self, credential: Credential) -> str:
        return StoredCredential(
            token=credential.token, expires_at=credential.expires_at
        ).model_dump_json()

    def parse(self, raw: str) -> Optional[Credential]:
        """Parse a stored value into a Credential, or None if unusable."""
        try:
            stored = StoredCredential.model_validate_json(raw)
        except PydanticValidationError:
            stored = None

        if stored is not None:
            exp = _exp_claim(stored.token)
            expires_at = min(stored.expires_at, exp) if exp is not None else stored.expires_at
            return Credential(token=stored.token, expires_at=expires_at)

        try:
            json.loads(raw)
        except ValueError:
            pass
        else:
            logger.warning("Stored credential has an unrecognized JSON layout")
            return None

        # Legacy layout: the bare token with no companion timestamp
        exp = _exp_claim(raw)
        if exp is None:
            logger.warning("Stored legacy credential has no expiry, discarding")
            return None
        return Credential(token=raw, expires_at=exp)

    async def persist(self, credential: Union[Credential, str]) -> Credential:
        """
        Store a credential.

        Args:
            credential: Credential, or a raw token whose expiry will be resolved

        Returns:
            The stored Credential
        """
        if isinstance(credential, str):
            credential = self.build_credential(credential)
        await self.store.set(TOKEN_STORAGE_KEY, self.encode(credential))
        return credential

    async def retrieve_credential(self) -> Optional[Credential]:
        """
        Load the stored credential if it is still valid.

        Expired or unreadable credentials are purged from storage.
        """
        raw = await self.store.get(TOKEN_STORAGE_KEY)
        if raw is None:
            return None

        credential = self.parse(raw)
        if credential is None or credential.is_expired(self.clock()):
            if credential is not None:
                logger.info("Stored credential expired, purging")
            await self.clear()
            return None
        return credential

    async def retrieve_valid(self) -> Optional[str]:
        """Return the stored token if present and unexpired, else None (purging storage)."""
        credential = await self.retrieve_credential()
        return credential.token if credential else None

    async def clear(self) -> None:
        await self.store.delete(TOKEN_STORAGE_KEY)
