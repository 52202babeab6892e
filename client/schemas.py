"""Pydantic schemas for request bodies and persisted values."""

from typing import Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """Request body for account creation."""
    username: str
    password: str
    email: str
    full_name: str = Field(serialization_alias="fullName")


class LoginRequest(BaseModel):
    """Request body for authentication."""
    username: str
    password: str


class ShareRequest(BaseModel):
    """Request body for sharing a file with another user."""
    file_id: str = Field(serialization_alias="fileId")
    to_user_id: str = Field(serialization_alias="toUserId")
    from_user_id: Optional[str] = Field(default=None, serialization_alias="fromUserId")


class StoredCredential(BaseModel):
    """Persisted credential envelope."""
    token: str = Field(min_length=1)
    expires_at: float
