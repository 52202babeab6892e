"""Backend endpoints, error codes and user-facing messages."""

SIGNUP_ENDPOINT = "/auth/signup"
LOGIN_ENDPOINT = "/auth/login"
LOGOUT_ENDPOINT = "/auth/logout"
PROFILE_ENDPOINT = "/auth/me"

FILES_UPLOADED_ENDPOINT = "/api/v1/files/uploaded"
FILE_UPLOAD_ENDPOINT = "/api/v1/files/upload"
FILE_DETAILS_ENDPOINT = "/api/v1/files/details/{file_id}"
FILE_DELETE_ENDPOINT = "/api/v1/files/{file_id}"
FILE_DOWNLOAD_ENDPOINT = "/api/v1/files/download/{file_id}"

SHARES_ENDPOINT = "/shares"
SHARES_INBOX_ENDPOINT = "/shares/inbox"
SHARES_SENT_ENDPOINT = "/shares/sent"
SHARE_READ_ENDPOINT = "/shares/{share_id}/read"
SHARE_ENDPOINT = "/shares/{share_id}"
SHARES_UNREAD_COUNT_ENDPOINT = "/shares/unread-count"

USERS_ENDPOINT = "/users"
USERS_SEARCH_ENDPOINT = "/users/search"
USER_ENDPOINT = "/users/{user_id}"
USER_BY_USERNAME_ENDPOINT = "/users/username/{username}"

# Backend codes that mean the submitted credentials are wrong
INVALID_CREDENTIAL_CODES = frozenset({
    'INVALID_CREDENTIALS',
    'INVALID_PASSWORD',
    'WRONG_PASSWORD',
})
USER_NOT_FOUND_CODES = frozenset({'USER_NOT_FOUND', 'UNKNOWN_USER'})
USERNAME_TAKEN_CODES = frozenset({
    'USERNAME_TAKEN',
    'USERNAME_EXISTS',
    'USER_ALREADY_EXISTS',
    'DUPLICATE_USERNAME',
})
EMAIL_TAKEN_CODES = frozenset({
    'EMAIL_EXISTS',
    'EMAIL_TAKEN',
    'EMAIL_ALREADY_EXISTS',
    'DUPLICATE_EMAIL',
})
SESSION_EXPIRED_CODES = frozenset({
    'TOKEN_EXPIRED',
    'INVALID_TOKEN',
    'INVALID_API_KEY',
    'SESSION_EXPIRED',
})

ERROR_MESSAGES = {
    'INVALID_CREDENTIALS': 'Invalid username or password',
    'INVALID_PASSWORD': 'Invalid username or password',
    'WRONG_PASSWORD': 'Invalid username or password',
    'USER_NOT_FOUND': 'User not found',
    'UNKNOWN_USER': 'User not found',
    'USERNAME_TAKEN': 'Username is already taken',
    'USERNAME_EXISTS': 'Username is already taken',
    'USER_ALREADY_EXISTS': 'Username is already taken',
    'DUPLICATE_USERNAME': 'Username is already taken',
    'EMAIL_EXISTS': 'Email is already registered',
    'EMAIL_TAKEN': 'Email is already registered',
    'EMAIL_ALREADY_EXISTS': 'Email is already registered',
    'DUPLICATE_EMAIL': 'Email is already registered',
    'SESSION_EXPIRED': 'Your session has expired. Please log in again.',
    'TOKEN_EXPIRED': 'Your session has expired. Please log in again.',
    'ALREADY_SHARED': 'File is already shared with this user',
    'FILE_NOT_FOUND': 'File not found',
}

SHARE_ERROR_MESSAGES = {
    'ALREADY_SHARED': 'File is already shared with this user',
    'USER_NOT_FOUND': 'Recipient user not found',
    'FILE_NOT_FOUND': 'File not found',
}

NETWORK_ERROR_MESSAGE = "Cannot reach the server. Check your connection and try again."
TIMEOUT_ERROR_MESSAGE = "Request timed out. Please try again."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server"
DELETE_UNAVAILABLE_MESSAGE = "Delete is not available yet"
