"""Local input validation run before any network call."""

import re

from client.exceptions import ValidationError
from client.models import LoginData, SignupData

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_]+$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

MIN_USERNAME_LENGTH = 3
MIN_FULL_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6


def validate_signup(data: SignupData) -> None:
    """
    Validate signup fields in form order.

    Raises:
        ValidationError: Tagged with the first offending field
    """
    username = (data.username or "").strip()
    if not username:
        raise ValidationError("Username is required", field='username')
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters", field='username'
        )
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            "Username can only contain letters, numbers, and underscores", field='username'
        )

    full_name = (data.full_name or "").strip()
    if not full_name:
        raise ValidationError("Full name is required", field='full_name')
    if len(full_name) < MIN_FULL_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_FULL_NAME_LENGTH} characters", field='full_name'
        )

    email = (data.email or "").strip()
    if not email:
        raise ValidationError("Email is required", field='email')
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format", field='email')

    if not data.password:
        raise ValidationError("Password is required", field='password')
    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field='password'
        )

    if data.confirm_password is not None and data.confirm_password != data.password:
        raise ValidationError("Passwords must match", field='confirm_password')


def validate_login(data: LoginData) -> None:
    """Require both fields to be non-empty."""
    if not (data.username or "").strip() or not data.password:
        raise ValidationError("Username and password are required")
