"""Sharing files between users and reading the inbox."""

from collections.abc import Mapping
from typing import List, Set
from urllib.parse import quote

from client.adapters import adapt_share_list
from client.adapters.resolver import Field, key, to_int, to_opaque_id, to_text
from client.api_client import ApiClient
from client.constants import (
    SHARE_ENDPOINT,
    SHARE_ERROR_MESSAGES,
    SHARE_READ_ENDPOINT,
    SHARES_ENDPOINT,
    SHARES_INBOX_ENDPOINT,
    SHARES_SENT_ENDPOINT,
    SHARES_UNREAD_COUNT_ENDPOINT,
)
from client.exceptions import ClientError
from client.models import BestEffort, ShareResult
from client.normalize_error import normalize
from client.schemas import ShareRequest
from client.services.user_service import UserService
from client.session import SessionStore
from common.logging_config import get_logger
from common.types import ShareRecord

logger = get_logger(__name__)

SHARE_SUCCESS_MESSAGE = "File shared successfully"
SHARE_FAILURE_MESSAGE = "Failed to share file"

SHARE_ID_FIELD = Field('id', (key('id'), key('shareId'), key('share_id'), key('share', 'id'), key('data', 'id')))
UNREAD_COUNT_FIELD = Field('count', (key('count'), key('unreadCount'), key('unread_count'), key('data', 'count')))


def _share_path(template: str, share_id: str) -> str:
    return template.format(share_id=quote(str(share_id), safe=''))


class ShareService:
    """
    Share operations.

    Shares marked read in this process stay read in every later listing, even
    when the backend reports them unread again.
    """

    def __init__(self, api: ApiClient, session: SessionStore, users: UserService):
        self.api = api
        self.session = session
        self.users = users
        self._read_ids: Set[str] = set()

    async def share_file(self, file_id: str, recipient_id: str) -> ShareResult:
        user = await self.session.get_user()
        payload = ShareRequest(
            file_id=str(file_id),
            to_user_id=str(recipient_id),
            from_user_id=user.id if user is not None and user.id else None,
        ).model_dump(by_alias=True, exclude_none=True)

        logger.info(f"Sharing file {file_id}")
        try:
            raw = await self.api.post_json(SHARES_ENDPOINT, payload)
        except ClientError as e:
            code = e.code.upper() if isinstance(e.code, str) else None
            error = SHARE_ERROR_MESSAGES.get(code) or e.message or SHARE_FAILURE_MESSAGE
            logger.warning(f"Failed to share file {file_id}: code={e.code} status={e.status}")
            return ShareResult(success=False, error=error)

        source = raw if isinstance(raw, Mapping) else {}
        return ShareResult(
            success=True,
            share_id=to_opaque_id(SHARE_ID_FIELD.resolve(source)) or None,
            message=to_text(source.get('message')) or SHARE_SUCCESS_MESSAGE,
        )

    async def share_with_username(self, file_id: str, username: str) -> ShareResult:
        """Resolve a recipient by username, then share; the user id never leaves this method."""
        try:
            recipient = await self.users.get_user_by_username(username)
        except ClientError as e:
            return ShareResult(success=False, error=e.message)
        if recipient is None or not recipient.id:
            return ShareResult(success=False, error=SHARE_ERROR_MESSAGES['USER_NOT_FOUND'])
        return await self.share_file(file_id, recipient.id)

    def _apply_read_state(self, shares: List[ShareRecord]) -> List[ShareRecord]:
        result = []
        for share in shares:
            if share.is_read:
                self._read_ids.add(share.id)
            elif share.id in self._read_ids:
                share = share.mark_read()
            result.append(share)
        return result

    async def list_inbox(self) -> List[ShareRecord]:
        raw = await self.api.get_json(SHARES_INBOX_ENDPOINT)
        shares = self._apply_read_state(adapt_share_list(raw))
        logger.debug(f"Inbox listed: {len(shares)} shares")
        return shares

    async def list_sent(self) -> List[ShareRecord]:
        raw = await self.api.get_json(SHARES_SENT_ENDPOINT)
        return adapt_share_list(raw)

    async def mark_share_read(self, share_id: str) -> BestEffort:
        """
        Mark a share read locally, then tell the backend.

        Never raises; a failed notification is reported in the result.
        """
        share_id = str(share_id)
        self._read_ids.add(share_id)
        try:
            await self.api.request('PATCH', _share_path(SHARE_READ_ENDPOINT, share_id), max_retries=0)
        except Exception as e:
            error = normalize(e)
            logger.warning(f"Failed to mark share {share_id} as read: {error.message}")
            return BestEffort.failed(error)
        return BestEffort.ok()

    async def remove_from_inbox(self, share_id: str) -> None:
        await self.api.request('DELETE', _share_path(SHARE_ENDPOINT, share_id))
        self._read_ids.discard(str(share_id))
        logger.info(f"Removed share {share_id} from inbox")

    async def unread_count(self) -> int:
        """Number of unread shares; 0 when the backend cannot be asked."""
        try:
            raw = await self.api.get_json(SHARES_UNREAD_COUNT_ENDPOINT)
        except ClientError as e:
            logger.warning(f"Failed to get unread count: {e.message}")
            return 0
        if isinstance(raw, Mapping):
            return max(to_int(UNREAD_COUNT_FIELD.resolve(raw)), 0)
        return max(to_int(raw), 0)
