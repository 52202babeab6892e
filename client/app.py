"""
FileShareClient: the public surface consumed by the UI layer.

Wires configuration, secure storage, the token manager, the session store,
the transport and the services together. One instance per process.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from client.api_client import ApiClient
from client.config import Config
from client.models import (
    AuthResult,
    BestEffort,
    DuplicateResolver,
    LoginData,
    ShareResult,
    SignupData,
    UploadResult,
)
from client.picker import FilePicker
from client.services import AuthService, FileService, ShareService, UserService
from client.session import SessionStore
from client.storage import JsonFileStore, KeyValueStore
from client.token_manager import TokenManager
from client.upload_coordinator import UploadCoordinator
from common.logging_config import get_logger
from common.types import FileRecord, PickedFile, ShareRecord, UploadBatchResult, UserPage, UserProfile

logger = get_logger(__name__)


class FileShareClient:
    def __init__(
        self,
        config: Config,
        store: KeyValueStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        picker: Optional[FilePicker] = None,
    ):
        """
        Initialize the client core.

        Args:
            config: Configuration instance
            store: Secure key-value store for credential and profile
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
            picker: File picker collaborator
        """
        self.config = config
        self.store = store
        self.token_manager = TokenManager(store, expiry_days=config.get_token_expiry_days())
        self.session = SessionStore(store, self.token_manager)
        self.api = ApiClient(config, self.session, transport=transport)

        self.auth = AuthService(self.api, self.session, self.token_manager)
        self.api.on_unauthorized = self.auth.handle_token_expired
        self.users = UserService(self.api)
        self.files = FileService(self.api, picker=picker)
        self.shares = ShareService(self.api, self.session, self.users)

    @classmethod
    def create(
        cls,
        config: Optional[Config] = None,
        store: Optional[KeyValueStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        picker: Optional[FilePicker] = None,
    ) -> 'FileShareClient':
        """Build a client with the default config file and on-disk store where none are given."""
        config = config or Config()
        store = store or JsonFileStore(config.get_storage_path())
        return cls(config, store, transport=transport, picker=picker)

    # Session

    async def signup(self, data: SignupData) -> AuthResult:
        return await self.auth.signup(data)

    async def login(self, data: LoginData) -> AuthResult:
        return await self.auth.login(data)

    async def logout(self) -> BestEffort:
        return await self.auth.logout()

    async def is_logged_in(self) -> bool:
        return await self.auth.is_logged_in()

    async def get_logged_in_user(self) -> Optional[UserProfile]:
        return await self.auth.get_logged_in_user()

    async def refresh_profile(self) -> Optional[UserProfile]:
        return await self.auth.refresh_profile()

    # Files

    async def pick_files(self) -> List[PickedFile]:
        return await self.files.pick_files()

    async def upload_one(self, file: PickedFile, user_id: str) -> UploadResult:
        return await self.files.upload_one(file, user_id)

    async def upload_batch(
        self,
        files: Sequence[PickedFile],
        user_id: str,
        resolver: Optional[DuplicateResolver] = None,
    ) -> UploadBatchResult:
        """
        Upload a batch of picked files.

        Args:
            files: Files in upload order
            user_id: Owner the files are uploaded for
            resolver: Called for each duplicate to decide skip or upload anyway;
                without one no duplicate check is made

        Returns:
            UploadBatchResult
        """
        if resolver is None:
            return await self.files.upload_files(files, user_id)
        return await self.upload_coordinator().run(files, user_id, resolver)

    def upload_coordinator(self) -> UploadCoordinator:
        """Coordinator for callers that drive duplicate decisions step by step."""
        return UploadCoordinator(self.files)

    async def check_duplicate(self, file_name: str, user_id: str) -> Optional[FileRecord]:
        return await self.files.check_duplicate(file_name, user_id)

    async def list_my_files(self) -> List[FileRecord]:
        return await self.files.list_my_files()

    async def get_file_details(self, file_id: str) -> Optional[FileRecord]:
        return await self.files.get_file_details(file_id)

    async def delete_file(self, file_id: str) -> None:
        await self.files.delete_file(file_id)

    async def download_file(self, record: FileRecord, dest_dir: Path) -> Path:
        return await self.files.download_file(record, dest_dir)

    # Shares

    async def share_file(self, file_id: str, recipient_id: str) -> ShareResult:
        return await self.shares.share_file(file_id, recipient_id)

    async def share_with_username(self, file_id: str, username: str) -> ShareResult:
        return await self.shares.share_with_username(file_id, username)

    async def list_inbox(self) -> List[ShareRecord]:
        return await self.shares.list_inbox()

    async def list_sent(self) -> List[ShareRecord]:
        return await self.shares.list_sent()

    async def mark_share_read(self, share_id: str) -> BestEffort:
        return await self.shares.mark_share_read(share_id)

    async def remove_from_inbox(self, share_id: str) -> None:
        await self.shares.remove_from_inbox(share_id)

    async def unread_count(self) -> int:
        return await self.shares.unread_count()

    # Users

    async def search_users(self, query: str, page: int = 1, page_size: int = 20) -> UserPage:
        return await self.users.search_users(query, page, page_size)

    async def get_user_by_username(self, username: str) -> Optional[UserProfile]:
        return await self.users.get_user_by_username(username)

    async def close(self) -> None:
        await self.api.aclose()
        logger.info("Client closed")

    async def __aenter__(self) -> 'FileShareClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
