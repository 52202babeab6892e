"""
Session store: the credential and the user profile, persisted as a pair.

One SessionStore is created at start-up and handed to both the auth
orchestrator and the transport's credential interceptor. Every write goes
through an asyncio.Lock so two operations can never interleave their
read-modify-write of storage and leave a credential from one operation paired
with a profile from another.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Optional

from client.storage import KeyValueStore
from client.token_manager import TokenManager
from common.constants import TOKEN_STORAGE_KEY, USER_STORAGE_KEY
from common.logging_config import get_logger
from common.types import Credential, UserProfile

logger = get_logger(__name__)


@dataclass(frozen=True)
class Session:
    """A credential and the profile it belongs to."""
    credential: Credential
    user: UserProfile


class SessionStore:
    """Atomic persistence of the current session."""

    def __init__(self, store: KeyValueStore, token_manager: TokenManager):
        """
        Initialize session store.

        Args:
            store: Secure key-value store holding both session keys
            token_manager: Token lifecycle manager sharing the same store
        """
        self.store = store
        self.token_manager = token_manager
        self._lock = asyncio.Lock()

    async def _read_user(self) -> Optional[UserProfile]:
        raw = await self.store.get(USER_STORAGE_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored profile is not valid JSON, ignoring it")
            return None
        if not isinstance(data, dict):
            return None
        return UserProfile.from_dict(data)

    async def _write_user(self, user: UserProfile) -> None:
        await self.store.set(USER_STORAGE_KEY, json.dumps(user.to_dict()))

    async def _clear_unlocked(self) -> None:
        first_error = None
        for key in (TOKEN_STORAGE_KEY, USER_STORAGE_KEY):
            try:
                await self.store.delete(key)
            except Exception as e:
                logger.error(f"Failed to delete session key {key}: {e}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    async def save(self, credential: Credential, user: UserProfile) -> Session:
        """
        Persist a new session, replacing any previous one.

        If the second write fails the previous values are restored so storage
        never holds a credential without its profile.
        """
        async with self._lock:
            previous_token = await self.store.get(TOKEN_STORAGE_KEY)
            previous_user = await self.store.get(USER_STORAGE_KEY)
            try:
                await self.token_manager.persist(credential)
                await self._write_user(user)
            except Exception:
                logger.error("Session write failed, restoring previous session state")
                await self._restore(TOKEN_STORAGE_KEY, previous_token)
                await self._restore(USER_STORAGE_KEY, previous_user)
                raise
            logger.info(f"Session saved for user: {user.username}")
            return Session(credential=credential, user=user)

    async def _restore(self, key: str, value: Optional[str]) -> None:
        try:
            if value is None:
                await self.store.delete(key)
            else:
                await self.store.set(key, value)
        except Exception as e:
            logger.error(f"Failed to restore session key {key}: {e}")

    async def _stored_credential(self) -> Optional[Credential]:
        raw = await self.store.get(TOKEN_STORAGE_KEY)
        return self.token_manager.parse(raw) if raw is not None else None

    async def update_user(self, user: UserProfile, expected_token: Optional[str] = None) -> bool:
        """
        Replace the stored profile, leaving the credential untouched.

        Args:
            user: Fresh profile
            expected_token: If given, only write when this credential is still the stored one

        Returns:
            True if the profile was written
        """
        async with self._lock:
            credential = await self._stored_credential()
            if credential is None or credential.is_expired(self.token_manager.clock()):
                logger.info("No active session, discarding refreshed profile")
                if credential is not None:
                    await self._clear_unlocked()
                return False
            if expected_token is not None and credential.token != expected_token:
                logger.info("Session changed during profile refresh, discarding refreshed profile")
                return False
            await self._write_user(user)
            return True

    async def clear(self) -> None:
        """Delete credential and profile together."""
        async with self._lock:
            await self._clear_unlocked()
            logger.info("Session cleared")

    async def clear_if(self, token: str) -> bool:
        """
        Delete credential and profile only while token is still the stored credential.

        Args:
            token: Credential that was rejected

        Returns:
            True if the session was cleared
        """
        async with self._lock:
            credential = await self._stored_credential()
            if credential is None or credential.token != token:
                logger.info("Rejected credential is no longer the stored one, keeping session")
                return False
            await self._clear_unlocked()
            logger.info("Session cleared")
            return True

    async def load(self) -> Optional[Session]:
        """
        Read the current session.

        Expired credentials are purged. A torn state (credential without
        profile or profile without credential) is cleared and reported as no
        session.
        """
        async with self._lock:
            credential = await self.token_manager.retrieve_credential()
            user = await self._read_user()
            if credential is None and user is None:
                return None
            if credential is None or user is None:
                logger.warning("Found incomplete session in storage, clearing it")
                await self._clear_unlocked()
                return None
            return Session(credential=credential, user=user)

    async def get_valid_token(self) -> Optional[str]:
        """Token to attach to outbound requests, or None if absent or expired."""
        session = await self.load()
        return session.credential.token if session else None

    async def get_user(self) -> Optional[UserProfile]:
        session = await self.load()
        return session.user if session else None
