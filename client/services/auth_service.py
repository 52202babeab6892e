"""Session and authentication orchestration."""

import asyncio
from dataclasses import replace
from typing import Optional

from client.adapters import AuthPayload, adapt_auth_response, adapt_user
from client.adapters.user_adapter import has_identity
from client.api_client import ApiClient
from client.constants import (
    EMAIL_TAKEN_CODES,
    ERROR_MESSAGES,
    INVALID_CREDENTIAL_CODES,
    LOGIN_ENDPOINT,
    LOGOUT_ENDPOINT,
    PROFILE_ENDPOINT,
    SIGNUP_ENDPOINT,
    USER_NOT_FOUND_CODES,
    USERNAME_TAKEN_CODES,
)
from client.exceptions import (
    ClientError,
    SessionExpiredError,
    UnknownError,
    ValidationError,
)
from client.models import AuthResult, BestEffort, LoginData, SignupData
from client.normalize_error import normalize
from client.schemas import LoginRequest, SignupRequest
from client.session import Session, SessionStore
from client.token_manager import TokenManager
from client.validation import validate_login, validate_signup
from common.logging_config import get_logger
from common.types import UserProfile

logger = get_logger(__name__)

SIGNUP_SUCCESS_MESSAGE = "Account created successfully"
LOGIN_SUCCESS_MESSAGE = "Login successful"
MISSING_CREDENTIAL_MESSAGE = "Server did not return a session credential"
EXPIRED_CREDENTIAL_MESSAGE = "Server returned a credential that is already expired"


def _field_for(error: ClientError) -> Optional[str]:
    if isinstance(error, ValidationError):
        return error.field
    code = error.code.upper() if isinstance(error.code, str) else None
    if code in USER_NOT_FOUND_CODES or code in USERNAME_TAKEN_CODES:
        return 'username'
    if code in INVALID_CREDENTIAL_CODES:
        return 'password'
    if code in EMAIL_TAKEN_CODES:
        return 'email'
    return error.field


def _failure(error: ClientError, login: bool = False) -> AuthResult:
    """Map a failure to a field-tagged AuthResult."""
    code = error.code.upper() if isinstance(error.code, str) else None
    if login and error.status == 401 and code not in USER_NOT_FOUND_CODES:
        # Authentication endpoint: a bare 401 means the credentials were rejected
        return AuthResult(
            success=False,
            message=ERROR_MESSAGES['INVALID_CREDENTIALS'],
            field='password',
        )
    # Server codes get the canonical wording; locally raised errors keep their own
    message = ERROR_MESSAGES.get(code, error.message) if code and error.status is not None else error.message
    return AuthResult(success=False, message=message, field=_field_for(error))


class AuthService:
    """
    Drives the LoggedOut -> LoggedIn -> LoggedOut session lifecycle.

    Session-mutating operations (signup, login, logout, refresh_profile) hold
    an operation lock for their whole duration; storage writes additionally go
    through the session store's own lock. handle_token_expired takes only the
    session store lock so the transport can call it from inside any operation.
    """

    def __init__(self, api: ApiClient, session: SessionStore, token_manager: TokenManager):
        self.api = api
        self.session = session
        self.token_manager = token_manager
        self._op_lock = asyncio.Lock()

    async def signup(self, data: SignupData) -> AuthResult:
        try:
            validate_signup(data)
        except ValidationError as e:
            logger.info(f"Signup rejected by local validation: field={e.field}")
            return AuthResult(success=False, message=e.message, field=e.field)

        username = data.username.strip()
        payload = SignupRequest(
            username=username,
            password=data.password,
            email=data.email.strip(),
            full_name=data.full_name.strip(),
        ).model_dump(by_alias=True)

        logger.info(f"Attempting to sign up user: {username}")
        async with self._op_lock:
            try:
                raw = await self.api.post_json(SIGNUP_ENDPOINT, payload, authenticated=False)
                auth = adapt_auth_response(raw)
                if auth.token is None:
                    logger.info(f"Signup response for {username} carried no credential, logging in")
                    login_auth = await self._authenticate(username, data.password)
                    auth = AuthPayload(
                        token=login_auth.token,
                        user=login_auth.user or auth.user,
                        expires_at=login_auth.expires_at,
                    )
                session = await self._establish(auth)
            except ClientError as e:
                logger.warning(f"Signup failed for user: {username} code={e.code} status={e.status}")
                return _failure(e)

        logger.info(f"Signup successful for user: {username}")
        return AuthResult(
            success=True,
            message=SIGNUP_SUCCESS_MESSAGE,
            user=session.user,
            token=session.credential.token,
        )

    async def login(self, data: LoginData) -> AuthResult:
        try:
            validate_login(data)
        except ValidationError as e:
            return AuthResult(success=False, message=e.message, field=e.field)

        username = data.username.strip()
        logger.info(f"Login attempt for user: {username}")
        async with self._op_lock:
            try:
                auth = await self._authenticate(username, data.password)
                session = await self._establish(auth)
            except ClientError as e:
                logger.warning(f"Login failed for user: {username} code={e.code} status={e.status}")
                return _failure(e, login=True)

        logger.info(f"Login successful for user: {username}")
        return AuthResult(
            success=True,
            message=LOGIN_SUCCESS_MESSAGE,
            user=session.user,
            token=session.credential.token,
        )

    async def _authenticate(self, username: str, password: str) -> AuthPayload:
        payload = LoginRequest(username=username, password=password).model_dump()
        raw = await self.api.post_json(LOGIN_ENDPOINT, payload, authenticated=False)
        return adapt_auth_response(raw)

    async def _establish(self, auth: AuthPayload) -> Session:
        """
        Resolve credential and user, then persist them as one session.

        Raises:
            ClientError: If either half cannot be resolved
        """
        if not auth.token:
            raise UnknownError(MISSING_CREDENTIAL_MESSAGE)

        credential = self.token_manager.build_credential(auth.token, auth.expires_at)
        if credential.is_expired(self.token_manager.clock()):
            raise SessionExpiredError(EXPIRED_CREDENTIAL_MESSAGE)

        user = auth.user
        if user is None:
            logger.info("Auth response carried no user, fetching profile")
            raw = await self.api.get_json(
                PROFILE_ENDPOINT,
                headers={'Authorization': f"Bearer {credential.token}"},
                authenticated=False,
            )
            if not has_identity(raw):
                raise UnknownError("Server returned an empty profile")
            user = adapt_user(raw)

        return await self.session.save(credential, user)

    async def logout(self) -> BestEffort:
        """
        Notify the backend, then clear the local session regardless of the outcome.

        Never raises; a failed notification is reported in the result.
        """
        async with self._op_lock:
            remote_error = None
            try:
                if await self.session.get_valid_token():
                    await self.api.request('POST', LOGOUT_ENDPOINT, max_retries=0)
            except Exception as e:
                remote_error = normalize(e)
                logger.warning(f"Logout notification failed, clearing session anyway: {remote_error.message}")

            try:
                await self.session.clear()
            except Exception as e:
                logger.error(f"Failed to clear session on logout: {e}")
                remote_error = remote_error or normalize(e)

        logger.info("Logged out")
        return BestEffort.ok() if remote_error is None else BestEffort.failed(remote_error)

    async def is_logged_in(self) -> bool:
        return await self.session.load() is not None

    async def get_logged_in_user(self) -> Optional[UserProfile]:
        return await self.session.get_user()

    async def is_current_token_expired(self) -> bool:
        session = await self.session.load()
        return session is None or session.credential.is_expired(self.token_manager.clock())

    async def refresh_profile(self) -> Optional[UserProfile]:
        """
        Fetch the latest profile and replace the stored one.

        Returns:
            The refreshed profile, or None on failure (the stored session is kept)
        """
        async with self._op_lock:
            current = await self.session.load()
            if current is None:
                logger.info("Profile refresh skipped: not logged in")
                return None

            try:
                raw = await self.api.get_json(PROFILE_ENDPOINT)
            except ClientError as e:
                logger.warning(f"Profile refresh failed: {e.message}")
                return None

            if not has_identity(raw):
                logger.warning("Profile refresh returned no usable profile")
                return None

            user = adapt_user(raw)
            if not user.id:
                user = replace(user, id=current.user.id)

            if not await self.session.update_user(user, expected_token=current.credential.token):
                return None
            logger.info(f"Profile refreshed for user: {user.username}")
            return user

    async def handle_token_expired(self, rejected_token: Optional[str] = None) -> None:
        """
        Tear the session down after an authorization failure or a failed local expiry check.

        Args:
            rejected_token: Credential the server refused; the session is only
                cleared while that credential is still the stored one
        """
        if rejected_token is None:
            logger.info("Credential expired, clearing session")
            await self.session.clear()
            return
        if await self.session.clear_if(rejected_token):
            logger.info("Credential rejected by the server, session cleared")

    async def require_session(self) -> Session:
        """
        Current session, for operations that need the signed-in user.

        Raises:
            SessionExpiredError: If there is no live session
        """
        session = await self.session.load()
        if session is None:
            raise SessionExpiredError(ERROR_MESSAGES['SESSION_EXPIRED'])
        return session
