"""Adapter for file payloads (single and list)."""

from typing import Any, List

from client.adapters.resolver import (
    Field,
    decode_name,
    key,
    list_items,
    resolve_fields,
    to_iso_timestamp,
    to_non_negative_int,
    to_opaque_id,
    to_optional_text,
    to_text,
    unwrap,
    utc_now_iso,
)
from client.mime import normalize_mime_type
from common.constants import DEFAULT_FILE_NAME, UNKNOWN_DISPLAY_NAME
from common.types import FileRecord

FILE_WRAPPERS = ('file', 'data', 'result')
FILE_MARKERS = ('file_id', 'fileId', 'file_name', 'fileName', 'id')
FILE_LIST_WRAPPERS = ('files', 'items', 'data', 'results')

FILE_FIELDS = (
    Field('id', (key('file_id'), key('fileId'), key('id'), key('_id')), default=""),
    Field(
        'file_name',
        (key('file_name'), key('fileName'), key('name'), key('original_name'), key('filename')),
        default=DEFAULT_FILE_NAME,
        skip_blank=True,
    ),
    Field(
        'file_type',
        (key('file_type'), key('fileType'), key('mimeType'), key('mime_type'), key('content_type')),
    ),
    Field('file_size', (key('file_size'), key('fileSize'), key('size')), default=0),
    Field(
        'owner_id',
        (
            key('uploaded_by'),
            key('uploadedBy'),
            key('owner_id'),
            key('ownerId'),
            key('uploadedByUserId'),
            key('user_id'),
            key('owner'),
        ),
        default="",
    ),
    Field(
        'owner_name',
        (
            key('uploaded_by_full_name'),
            key('uploadedByFullName'),
            key('uploaded_by', 'full_name'),
            key('uploaded_by', 'fullName'),
            key('uploadedBy', 'fullName'),
            key('owner', 'full_name'),
            key('owner', 'fullName'),
            key('uploaded_by_username'),
            key('uploadedByUsername'),
            key('owner_username'),
            key('ownerName'),
            key('uploaded_by', 'username'),
            key('uploadedBy', 'username'),
            key('owner', 'username'),
        ),
        skip_blank=True,
    ),
    Field(
        'owner_email',
        (
            key('uploaded_by_email'),
            key('uploadedByEmail'),
            key('owner_email'),
            key('uploaded_by', 'email'),
            key('uploadedBy', 'email'),
            key('owner', 'email'),
        ),
        default="",
    ),
    Field(
        'uploaded_at',
        (
            key('upload_time'),
            key('uploadTime'),
            key('uploaded_at'),
            key('uploadedAt'),
            key('created_at'),
            key('createdAt'),
        ),
        default=utc_now_iso,
    ),
    Field(
        'download_ref',
        (key('download_url'), key('downloadUrl'), key('url'), key('file_url'), key('fileUrl')),
        skip_blank=True,
    ),
)


def adapt_file(raw: Any, default_owner: str = UNKNOWN_DISPLAY_NAME) -> FileRecord:
    """
    Map a file payload of any known shape to a FileRecord.

    Missing fields fall back to defaults: name "File", size 0, type
    application/octet-stream, upload time now. Percent-encoded names are
    decoded and bare extensions are expanded to full MIME types.

    Args:
        raw: Backend payload, optionally wrapped in {"file": ...} or {"data": ...}
        default_owner: Display name used when the payload names no owner

    Returns:
        FileRecord
    """
    values = resolve_fields(unwrap(raw, FILE_WRAPPERS, FILE_MARKERS), FILE_FIELDS)

    file_name = decode_name(values['file_name'], DEFAULT_FILE_NAME)
    return FileRecord(
        id=to_opaque_id(values['id']),
        file_name=file_name,
        file_type=normalize_mime_type(to_text(values['file_type']), file_name),
        file_size=to_non_negative_int(values['file_size']),
        owner_id=to_opaque_id(values['owner_id']),
        owner_display_name=to_text(values['owner_name']) or default_owner,
        uploaded_at=to_iso_timestamp(values['uploaded_at']),
        download_ref=to_optional_text(values['download_ref']),
        owner_email=to_text(values['owner_email']),
    )


def adapt_file_list(raw: Any, default_owner: str = UNKNOWN_DISPLAY_NAME) -> List[FileRecord]:
    """Map a bare array or an enveloped list of file payloads; non-object items are dropped."""
    return [
        adapt_file(item, default_owner)
        for item in list_items(raw, FILE_LIST_WRAPPERS)
        if isinstance(item, dict)
    ]
