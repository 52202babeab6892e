"""Response adapters mapping backend payloads to canonical entities."""

from client.adapters.auth_adapter import (
    AuthPayload,
    adapt_auth_response,
    extract_token,
    extract_user,
)
from client.adapters.file_adapter import adapt_file, adapt_file_list
from client.adapters.share_adapter import adapt_share, adapt_share_list
from client.adapters.user_adapter import adapt_user, adapt_user_list, adapt_user_page

__all__ = [
    "AuthPayload",
    "adapt_auth_response",
    "extract_token",
    "extract_user",
    "adapt_file",
    "adapt_file_list",
    "adapt_share",
    "adapt_share_list",
    "adapt_user",
    "adapt_user_list",
    "adapt_user_page",
]
