"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from client.app import FileShareClient
from client.exceptions import ClientError, SessionExpiredError
from client.models import DuplicateDecision, DuplicateResolver, LoginData, SignupData
from client.picker import PathPicker
from common.logging_config import get_logger
from cli.constants import DEFAULT_DOWNLOAD_DIR, NOT_LOGGED_IN_MESSAGE
from cli.models import (
    DeleteCommand,
    DetailsCommand,
    DownloadCommand,
    LoginCommand,
    ReadCommand,
    SearchCommand,
    ShareCommand,
    SignupCommand,
    UploadCommand,
)
from cli.utils import (
    format_file,
    format_file_details,
    format_file_size,
    format_share,
    format_upload_result,
    format_user,
)

logger = get_logger(__name__)


_client: Optional[FileShareClient] = None


def get_client() -> FileShareClient:
    """
    Get or create global FileShareClient instance.

    Returns:
        FileShareClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new FileShareClient instance")
        _client = FileShareClient.create()
    return _client


def _error(e: ClientError) -> str:
    if isinstance(e, SessionExpiredError):
        return f"Error: {e.message}\n{NOT_LOGGED_IN_MESSAGE}"
    return f"Error: {e.message}"


async def skip_duplicates(pending) -> DuplicateDecision:
    return DuplicateDecision.SKIP


async def handle_signup(cmd: SignupCommand, client: Optional[FileShareClient] = None) -> str:
    """
    Handle 'signup' command.

    Args:
        cmd: SignupCommand with account fields
        client: Optional FileShareClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    client = client or get_client()
    result = await client.signup(SignupData(
        username=cmd.username,
        password=cmd.password,
        email=cmd.email,
        full_name=cmd.full_name,
    ))
    if not result.success:
        field = f" ({result.field})" if result.field else ""
        return f"Error{field}: {result.message}"
    return f"{result.message}. Logged in as {format_user(result.user)}"


async def handle_login(cmd: LoginCommand, client: Optional[FileShareClient] = None) -> str:
    """
    Handle 'login' command.

    Args:
        cmd: LoginCommand with username and password
        client: Optional FileShareClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    client = client or get_client()
    result = await client.login(LoginData(username=cmd.username, password=cmd.password))
    if not result.success:
        return f"Error: {result.message}"
    return f"Logged in as {format_user(result.user)}"


async def handle_logout(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    outcome = await client.logout()
    if outcome.error is not None:
        logger.info(f"Server was not notified of logout: {outcome.error.message}")
    return "Logged out"


async def handle_whoami(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    user = await client.get_logged_in_user()
    if user is None:
        return NOT_LOGGED_IN_MESSAGE
    email = f" <{user.email}>" if user.email else ""
    return f"{format_user(user)}{email}"


async def handle_refresh(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    if not await client.is_logged_in():
        return NOT_LOGGED_IN_MESSAGE
    user = await client.refresh_profile()
    if user is None:
        return "Could not refresh profile, showing saved profile instead"
    return f"Profile refreshed: {format_user(user)}"


async def handle_upload(
    cmd: UploadCommand,
    client: Optional[FileShareClient] = None,
    resolver: Optional[DuplicateResolver] = None,
) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with local file paths
        client: Optional FileShareClient for dependency injection (testing)
        resolver: Asked what to do with each duplicate (default: skip)

    Returns:
        Per-file upload summary
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} files")
    client = client or get_client()
    user = await client.get_logged_in_user()
    if user is None:
        return NOT_LOGGED_IN_MESSAGE

    files = await PathPicker(cmd.file_list).pick()
    if not files:
        return "Error: None of the given paths is a readable file"

    result = await client.upload_batch(files, user.id, resolver or skip_duplicates)
    logger.debug("Upload command completed")
    return format_upload_result(result)


async def handle_list(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    try:
        files = await client.list_my_files()
    except ClientError as e:
        return _error(e)
    if not files:
        return "No files uploaded yet"
    total = sum(record.file_size for record in files)
    lines = [f"{len(files)} files ({format_file_size(total)}):"]
    lines.extend(format_file(record) for record in files)
    return "\n".join(lines)


async def handle_details(cmd: DetailsCommand, client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    try:
        record = await client.get_file_details(cmd.file_id)
    except ClientError as e:
        return _error(e)
    if record is None:
        return f"File not found: {cmd.file_id}"
    return format_file_details(record)


async def handle_delete(cmd: DeleteCommand, client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    try:
        await client.delete_file(cmd.file_id)
    except ClientError as e:
        return _error(e)
    return f"Deleted file {cmd.file_id}"


async def handle_download(cmd: DownloadCommand, client: Optional[FileShareClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with file id and optional output directory
        client: Optional FileShareClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: file_id={cmd.file_id} output_dir={cmd.output_dir}")
    client = client or get_client()
    try:
        record = await client.get_file_details(cmd.file_id)
        if record is None:
            return f"File not found: {cmd.file_id}"
        output_file = await client.download_file(record, Path(cmd.output_dir or DEFAULT_DOWNLOAD_DIR))
    except ClientError as e:
        return _error(e)
    except OSError as e:
        return f"Error writing file: {e}"
    return f"Downloaded: {record.file_name}\nSaved to: {output_file.absolute()}"


async def handle_share(cmd: ShareCommand, client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    result = await client.share_with_username(cmd.file_id, cmd.username)
    if not result.success:
        return f"Error: {result.error}"
    return f"{result.message} (@{cmd.username})"


async def handle_inbox(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    try:
        shares = await client.list_inbox()
    except ClientError as e:
        return _error(e)
    if not shares:
        return "Inbox is empty"
    unread = sum(1 for share in shares if not share.is_read)
    lines = [f"{len(shares)} shared files, {unread} unread:"]
    lines.extend(format_share(share) for share in shares)
    return "\n".join(lines)


async def handle_sent(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    try:
        shares = await client.list_sent()
    except ClientError as e:
        return _error(e)
    if not shares:
        return "You have not shared any files"
    return "\n".join(format_share(share, incoming=False) for share in shares)


async def handle_read(cmd: ReadCommand, client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    outcome = await client.mark_share_read(cmd.share_id)
    if outcome.error is not None:
        return f"Marked share {cmd.share_id} as read (server not updated: {outcome.error.message})"
    return f"Marked share {cmd.share_id} as read"


async def handle_unread(client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    count = await client.unread_count()
    return f"{count} unread shared files"


async def handle_search(cmd: SearchCommand, client: Optional[FileShareClient] = None) -> str:
    client = client or get_client()
    try:
        page = await client.search_users(cmd.query)
    except ClientError as e:
        return _error(e)
    if not page.users:
        return "No users found" if len(cmd.query.strip()) >= 2 else "Type at least 2 characters to search"
    lines = [format_user(user) for user in page.users]
    if page.has_more:
        lines.append("(more results available)")
    return "\n".join(lines)
