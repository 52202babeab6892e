"""MIME type normalization: bare extensions and short codes to type/subtype."""

import mimetypes
from typing import Optional

from common.constants import DEFAULT_MIME_TYPE

MIME_TYPES = {
    # Text
    "txt": "text/plain",
    "text": "text/plain",
    "csv": "text/csv",
    "md": "text/markdown",
    "html": "text/html",
    "htm": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "rtf": "application/rtf",

    # Documents
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "odt": "application/vnd.oasis.opendocument.text",

    # Archives
    "zip": "application/zip",
    "rar": "application/vnd.rar",
    "7z": "application/x-7z-compressed",
    "gz": "application/gzip",
    "tar": "application/x-tar",

    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "heic": "image/heic",
    "tif": "image/tiff",
    "tiff": "image/tiff",

    # Audio
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "flac": "audio/flac",

    # Video
    "mp4": "video/mp4",
    "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "webm": "video/webm",
}


def extension_of(file_name: Optional[str]) -> str:
    """Lower-case extension of a file name without the dot, or ''."""
    if not file_name or '.' not in file_name:
        return ""
    return file_name.rsplit('.', 1)[-1].strip().lower()


def normalize_mime_type(file_type: Optional[str], file_name: Optional[str] = None) -> str:
    """
    Return a full type/subtype MIME string.

    A value that already contains '/' is kept (lower-cased, parameters
    dropped). A bare extension or short code is mapped; when the type is
    missing the file name's extension is used instead.

    Args:
        file_type: Wire value, e.g. "application/pdf", "pdf", ".PDF" or None
        file_name: Name used to infer the type when file_type is unusable

    Returns:
        MIME type, application/octet-stream when nothing matches
    """
    value = (file_type or "").strip().lower()

    if '/' in value:
        mime = value.split(';', 1)[0].strip()
        major, _, minor = mime.partition('/')
        if major and minor:
            return mime
        value = ""

    for candidate in (value.lstrip('.'), extension_of(file_name)):
        if not candidate:
            continue
        if candidate in MIME_TYPES:
            return MIME_TYPES[candidate]
        guessed, _ = mimetypes.guess_type(f"file.{candidate}", strict=False)
        if guessed:
            return guessed

    return DEFAULT_MIME_TYPE
