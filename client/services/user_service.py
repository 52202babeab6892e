"""User directory lookups used when choosing a share recipient."""

from typing import Optional
from urllib.parse import quote

from client.adapters import adapt_user, adapt_user_page
from client.adapters.user_adapter import has_identity
from client.api_client import ApiClient
from client.constants import (
    USER_BY_USERNAME_ENDPOINT,
    USER_ENDPOINT,
    USERS_ENDPOINT,
    USERS_SEARCH_ENDPOINT,
)
from client.exceptions import NotFoundError
from common.logging_config import get_logger
from common.types import UserPage, UserProfile

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2
DEFAULT_SEARCH_PAGE_SIZE = 20
DEFAULT_LIST_PAGE_SIZE = 50


class UserService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def search_users(
        self,
        query: str,
        page: int = 1,
        page_size: int = DEFAULT_SEARCH_PAGE_SIZE,
    ) -> UserPage:
        """
        Search users by username or name.

        Queries shorter than two characters return an empty page without a
        network call.
        """
        term = (query or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return UserPage(users=[])
        logger.debug(f"Searching users: query={term!r} page={page}")
        raw = await self.api.get_json(
            USERS_SEARCH_ENDPOINT,
            params={'q': term, 'page': page, 'pageSize': page_size},
        )
        return adapt_user_page(raw)

    async def list_users(self, page: int = 1, page_size: int = DEFAULT_LIST_PAGE_SIZE) -> UserPage:
        raw = await self.api.get_json(USERS_ENDPOINT, params={'page': page, 'pageSize': page_size})
        return adapt_user_page(raw)

    async def get_user_by_id(self, user_id: str) -> Optional[UserProfile]:
        return await self._get_user(USER_ENDPOINT.format(user_id=quote(str(user_id), safe='')))

    async def get_user_by_username(self, username: str) -> Optional[UserProfile]:
        return await self._get_user(USER_BY_USERNAME_ENDPOINT.format(username=quote(username.strip(), safe='')))

    async def _get_user(self, endpoint: str) -> Optional[UserProfile]:
        try:
            raw = await self.api.get_json(endpoint)
        except NotFoundError:
            logger.info(f"User lookup found nothing: {endpoint}")
            return None
        if not has_identity(raw):
            return None
        return adapt_user(raw)
