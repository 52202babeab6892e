"""Service layer orchestrating transport, adapters and session state."""

from client.services.auth_service import AuthService
from client.services.file_service import FileService
from client.services.share_service import ShareService
from client.services.user_service import UserService

__all__ = [
    "AuthService",
    "FileService",
    "ShareService",
    "UserService",
]
