"""Input and result types exchanged with the UI layer."""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from client.exceptions import NormalizedError
from common.types import FileRecord, PickedFile, UserProfile


@dataclass(frozen=True)
class SignupData:
    username: str
    password: str
    email: str
    full_name: str
    confirm_password: Optional[str] = None


@dataclass(frozen=True)
class LoginData:
    username: str
    password: str


@dataclass(frozen=True)
class AuthResult:
    """
    Outcome of signup or login.

    Attributes:
        success: Whether a session was established
        message: Human readable outcome
        user: Profile of the new session
        token: Credential of the new session
        field: Input field the failure refers to (username, email, password, ...)
    """
    success: bool
    message: str
    user: Optional[UserProfile] = None
    token: Optional[str] = None
    field: Optional[str] = None


@dataclass(frozen=True)
class UploadResult:
    success: bool
    file: Optional[FileRecord] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ShareResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    share_id: Optional[str] = None


@dataclass(frozen=True)
class BestEffort:
    """
    Result of an operation whose failure is tolerated.

    The local effect always happened; error records what went wrong remotely,
    if anything, so callers can log it without having to catch.
    """
    completed: bool
    error: Optional[NormalizedError] = None

    @classmethod
    def ok(cls) -> 'BestEffort':
        return cls(completed=True)

    @classmethod
    def failed(cls, error: NormalizedError) -> 'BestEffort':
        return cls(completed=False, error=error)


class DuplicateDecision(Enum):
    """Answer to a duplicate-confirmation prompt."""
    SKIP = 'skip'
    UPLOAD_ANYWAY = 'upload_anyway'


@dataclass(frozen=True)
class PendingDuplicate:
    """
    A batch paused on a duplicate.

    Attributes:
        index: Position of the file in the batch input
        file: The picked file
        existing: The stored file with the same name
    """
    index: int
    file: PickedFile
    existing: FileRecord


DuplicateResolver = Callable[
    [PendingDuplicate],
    Union[DuplicateDecision, Awaitable[DuplicateDecision]],
]
