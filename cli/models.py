"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class SignupCommand:
    """Create an account."""

    username: str
    password: str
    email: str
    full_name: str
    command: Literal["signup"] = "signup"


@dataclass(frozen=True)
class LoginCommand:
    """Login with username and password."""

    username: str
    password: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class LogoutCommand:
    command: Literal["logout"] = "logout"


@dataclass(frozen=True)
class WhoamiCommand:
    command: Literal["whoami"] = "whoami"


@dataclass(frozen=True)
class RefreshCommand:
    command: Literal["refresh"] = "refresh"


@dataclass(frozen=True)
class UploadCommand:
    """Upload local files."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class DetailsCommand:
    file_id: str
    command: Literal["details"] = "details"


@dataclass(frozen=True)
class DeleteCommand:
    file_id: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by id."""

    file_id: str
    output_dir: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class ShareCommand:
    """Share a file with a user identified by username."""

    file_id: str
    username: str
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class InboxCommand:
    command: Literal["inbox"] = "inbox"


@dataclass(frozen=True)
class SentCommand:
    command: Literal["sent"] = "sent"


@dataclass(frozen=True)
class ReadCommand:
    share_id: str
    command: Literal["read"] = "read"


@dataclass(frozen=True)
class UnreadCommand:
    command: Literal["unread"] = "unread"


@dataclass(frozen=True)
class SearchCommand:
    query: str
    command: Literal["search"] = "search"


CommandRequest = (
    SignupCommand
    | LoginCommand
    | LogoutCommand
    | WhoamiCommand
    | RefreshCommand
    | UploadCommand
    | ListCommand
    | DetailsCommand
    | DeleteCommand
    | DownloadCommand
    | ShareCommand
    | InboxCommand
    | SentCommand
    | ReadCommand
    | UnreadCommand
    | SearchCommand
)
