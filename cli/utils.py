"""Formatting helpers for CLI output."""

from common.types import FileRecord, ShareRecord, UploadBatchResult, UserProfile
from cli.constants import GREEN, RESET, YELLOW


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_timestamp(iso_value: str) -> str:
    """Trim an ISO-8601 instant to 'YYYY-MM-DD HH:MM'."""
    return iso_value.replace('T', ' ')[:16] if iso_value else ""


def format_user(user: UserProfile) -> str:
    """Human identification of a user: full name and @username, never the internal id."""
    if user.full_name and user.full_name != user.username:
        return f"{user.full_name} (@{user.username})"
    return f"@{user.username}"


def format_file(record: FileRecord) -> str:
    return (
        f"  [{record.id or '-'}] {record.file_name}  "
        f"{format_file_size(record.file_size)}  {record.file_type}  "
        f"{format_timestamp(record.uploaded_at)}"
    )


def format_file_details(record: FileRecord) -> str:
    lines = [
        f"File:     {record.file_name}",
        f"ID:       {record.id or '-'}",
        f"Type:     {record.file_type}",
        f"Size:     {format_file_size(record.file_size)}",
        f"Owner:    {record.owner_display_name}",
        f"Uploaded: {format_timestamp(record.uploaded_at)}",
    ]
    return "\n".join(lines)


def format_share(share: ShareRecord, incoming: bool = True) -> str:
    marker = " " if share.is_read else f"{GREEN}●{RESET}"
    party = (
        f"from {share.sender_display_name}" if incoming
        else f"to {share.recipient_display_name}"
    )
    return (
        f"{marker} [{share.id or '-'}] {share.file.file_name}  "
        f"{format_file_size(share.file.file_size)}  {party}  "
        f"{format_timestamp(share.shared_at)}"
    )


def format_upload_result(result: UploadBatchResult) -> str:
    total = len(result.saved) + len(result.failed)
    lines = [f"Uploaded {len(result.saved)} of {total} files"]
    for record in result.saved:
        lines.append(f"  {GREEN}✓{RESET} {record.file_name} ({format_file_size(record.file_size)})")
    for failure in result.failed:
        lines.append(f"  ✗ {failure.name}: {failure.error}")
    for name in result.skipped:
        lines.append(f"  {YELLOW}-{RESET} {name} (skipped, already exists)")
    return "\n".join(lines)
