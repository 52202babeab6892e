"""Project-wide constants (storage keys, timeouts, adapter defaults)."""

TOKEN_STORAGE_KEY: str = "auth_token"
USER_STORAGE_KEY: str = "current_user"

DEFAULT_TIMEOUT_SECONDS: int = 30
DEFAULT_UPLOAD_TIMEOUT_SECONDS: int = 60
DEFAULT_TOKEN_EXPIRY_DAYS: int = 7
EXPIRING_SOON_THRESHOLD_SECONDS: int = 300

DEFAULT_MIME_TYPE: str = "application/octet-stream"
DEFAULT_FILE_NAME: str = "File"
UNKNOWN_DISPLAY_NAME: str = "Unknown"
OWN_FILE_DISPLAY_NAME: str = "You"
