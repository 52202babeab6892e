"""Shared data type definitions (UserProfile, FileRecord, ShareRecord, etc.)."""

import time
from dataclasses import asdict, dataclass, field, replace
from typing import List, Optional


@dataclass(frozen=True)
class Credential:
    """
    Bearer credential with the instant it stops being usable.

    Attributes:
        token: Opaque bearer string
        expires_at: Expiry instant as Unix timestamp (seconds)
    """
    token: str
    expires_at: float

    def seconds_remaining(self, now: Optional[float] = None) -> int:
        current = time.time() if now is None else now
        return int(self.expires_at - current)

    def is_expired(self, now: Optional[float] = None) -> bool:
        return self.seconds_remaining(now) <= 0


@dataclass(frozen=True)
class UserProfile:
    """
    Canonical identity of a user.

    The id is opaque and internal only; anything shown to a person uses
    username or full_name.
    """
    id: str
    username: str
    full_name: str
    email: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'UserProfile':
        return cls(
            id=str(data.get('id', '')),
            username=data.get('username', ''),
            full_name=data.get('full_name', ''),
            email=data.get('email'),
            created_at=data.get('created_at'),
        )


@dataclass(frozen=True)
class FileRecord:
    """
    Canonical metadata for a stored file.

    file_name is always the decoded human form and file_type is always a
    full type/subtype MIME string.
    """
    id: str
    file_name: str
    file_type: str
    file_size: int
    owner_id: str
    owner_display_name: str
    uploaded_at: str
    download_ref: Optional[str] = None
    owner_email: str = ""


@dataclass(frozen=True)
class ShareRecord:
    """
    A file shared from one user to another.

    is_read only ever moves from False to True in client code.
    """
    id: str
    file: FileRecord
    sender_id: str
    sender_display_name: str
    recipient_id: str
    recipient_display_name: str
    shared_at: str
    is_read: bool = False
    sender_username: str = ""

    def mark_read(self) -> 'ShareRecord':
        return self if self.is_read else replace(self, is_read=True)


@dataclass(frozen=True)
class UserPage:
    """One page of a user listing."""
    users: List[UserProfile]
    has_more: bool = False
    total: Optional[int] = None


@dataclass(frozen=True)
class PickedFile:
    """
    A local file chosen by the user for upload.

    Attributes:
        local_ref: Local path or URI of the file content
        display_name: Name as reported by the picker (may be percent-encoded)
        mime_type_hint: MIME type reported by the picker, if any
        size_hint: Size in bytes reported by the picker, if any
    """
    local_ref: str
    display_name: str
    mime_type_hint: Optional[str] = None
    size_hint: Optional[int] = None


@dataclass(frozen=True)
class UploadFailure:
    """A file that could not be uploaded, with the reason."""
    name: str
    error: str


@dataclass
class UploadBatchResult:
    """
    Outcome of a batch upload.

    Every uploaded input file lands in exactly one of saved or failed.
    skipped lists duplicates the user chose not to upload; refreshed holds the
    authoritative listing fetched after the batch, when it could be fetched.
    """
    saved: List[FileRecord] = field(default_factory=list)
    failed: List[UploadFailure] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    refreshed: Optional[List[FileRecord]] = None
