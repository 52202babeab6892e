"""File operations: picking, uploading, listing, details, delete and download."""

from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import quote

from client.adapters import adapt_file, adapt_file_list
from client.adapters.resolver import decode_name, utc_now_iso
from client.api_client import ApiClient
from client.constants import (
    DELETE_UNAVAILABLE_MESSAGE,
    FILE_DELETE_ENDPOINT,
    FILE_DETAILS_ENDPOINT,
    FILE_DOWNLOAD_ENDPOINT,
    FILE_UPLOAD_ENDPOINT,
    FILES_UPLOADED_ENDPOINT,
)
from client.exceptions import ClientError, NotFoundError
from client.mime import normalize_mime_type
from client.models import UploadResult
from client.normalize_error import normalize
from client.picker import FilePicker, local_path, upload_name
from common.constants import DEFAULT_FILE_NAME, OWN_FILE_DISPLAY_NAME
from common.logging_config import get_logger
from common.types import FileRecord, PickedFile, UploadBatchResult, UploadFailure

logger = get_logger(__name__)

UPLOAD_FAILED_MESSAGE = "Upload failed"


def _file_path(template: str, file_id: str) -> str:
    return template.format(file_id=quote(str(file_id), safe=''))


class FileService:
    def __init__(self, api: ApiClient, picker: Optional[FilePicker] = None):
        self.api = api
        self.picker = picker

    async def pick_files(self) -> List[PickedFile]:
        if self.picker is None:
            logger.warning("No file picker configured")
            return []
        return await self.picker.pick()

    async def upload_one(self, file: PickedFile, user_id: str) -> UploadResult:
        """
        Upload a single picked file.

        The returned record is a local placeholder carrying the server-assigned
        id when the response includes one; the authoritative record comes from
        the next listing.
        """
        name = upload_name(file)
        mime_type = normalize_mime_type(file.mime_type_hint, name)
        path = local_path(file.local_ref)

        try:
            size = file.size_hint if file.size_hint is not None else path.stat().st_size
            with open(path, 'rb') as content:
                raw = await self.api.upload(FILE_UPLOAD_ENDPOINT, name, content, mime_type, size)
        except ClientError as e:
            logger.warning(f"Upload failed for {name}: {e.message}")
            return UploadResult(success=False, error=e.message or UPLOAD_FAILED_MESSAGE)
        except OSError as e:
            logger.warning(f"Cannot read {name} for upload: {e}")
            return UploadResult(success=False, error=f"Cannot read file: {e.strerror or e}")

        server = adapt_file(raw, default_owner=OWN_FILE_DISPLAY_NAME)
        placeholder = FileRecord(
            id=server.id,
            file_name=name,
            file_type=mime_type,
            file_size=max(size, 0),
            owner_id=server.owner_id or str(user_id),
            owner_display_name=OWN_FILE_DISPLAY_NAME,
            uploaded_at=utc_now_iso(),
            download_ref=server.download_ref,
        )
        logger.info(f"Uploaded {name} [file_id={placeholder.id or 'pending'}]")
        return UploadResult(success=True, file=placeholder)

    async def upload_files(self, files: Sequence[PickedFile], user_id: str) -> UploadBatchResult:
        """
        Upload files one after another, isolating per-file failures.

        If anything was saved the listing is refreshed and each placeholder is
        replaced by its server record; if the refresh fails the placeholders
        are kept.
        """
        result = UploadBatchResult()
        for index, file in enumerate(files, start=1):
            name = upload_name(file)
            logger.info(f"Uploading file {index}/{len(files)}: {name}")
            try:
                outcome = await self.upload_one(file, user_id)
            except Exception as e:
                logger.error(f"Unexpected error uploading {name}: {e}", exc_info=True)
                result.failed.append(UploadFailure(name=name, error=normalize(e).message))
                continue
            if outcome.success and outcome.file is not None:
                result.saved.append(outcome.file)
            else:
                result.failed.append(UploadFailure(name=name, error=outcome.error or UPLOAD_FAILED_MESSAGE))

        if result.saved:
            try:
                listing = await self.list_my_files()
            except ClientError as e:
                logger.warning(f"Refresh after upload failed, keeping local records: {e.message}")
            else:
                result.refreshed = listing
                result.saved = _reconcile(result.saved, listing)

        logger.info(f"Batch upload finished: saved={len(result.saved)} failed={len(result.failed)}")
        return result

    async def check_duplicate(self, file_name: str, user_id: str) -> Optional[FileRecord]:
        """Existing file of this user with the same (decoded) name, if any."""
        name = decode_name(file_name, "")
        for record in await self.list_my_files():
            if record.file_name != name:
                continue
            if record.owner_id and user_id and record.owner_id != str(user_id):
                continue
            return record
        return None

    async def list_my_files(self) -> List[FileRecord]:
        raw = await self.api.get_json(FILES_UPLOADED_ENDPOINT)
        return adapt_file_list(raw, default_owner=OWN_FILE_DISPLAY_NAME)

    async def get_file_details(self, file_id: str) -> Optional[FileRecord]:
        try:
            raw = await self.api.get_json(_file_path(FILE_DETAILS_ENDPOINT, file_id))
        except NotFoundError:
            logger.info(f"File not found: {file_id}")
            return None
        return adapt_file(raw)

    async def delete_file(self, file_id: str) -> None:
        """
        Delete a file.

        Raises:
            NotFoundError: "Delete is not available yet" when the server answers 404 or 501
        """
        try:
            await self.api.request('DELETE', _file_path(FILE_DELETE_ENDPOINT, file_id))
        except ClientError as e:
            if e.status in (404, 501):
                logger.warning(f"Delete not available for file {file_id}: status={e.status}")
                raise NotFoundError(DELETE_UNAVAILABLE_MESSAGE, code=e.code, status=e.status) from e
            raise
        logger.info(f"Deleted file {file_id}")

    async def download_file(self, record: FileRecord, dest_dir: Path) -> Path:
        """
        Save a file's content into dest_dir under its own name.

        Returns:
            Path of the written file
        """
        output_file = Path(dest_dir).expanduser() / (Path(record.file_name).name or DEFAULT_FILE_NAME)
        await self.api.download(_file_path(FILE_DOWNLOAD_ENDPOINT, record.id), output_file)
        return output_file


def _reconcile(saved: List[FileRecord], listing: List[FileRecord]) -> List[FileRecord]:
    """
    Swap each placeholder for its server record.

    Placeholders carrying a server id match by id only. Those the upload
    response gave no id take the last unclaimed same-name record.
    """
    by_id = {record.id: record for record in listing if record.id}
    used = set()
    reconciled = []
    for placeholder in saved:
        if placeholder.id:
            match = by_id.get(placeholder.id)
        else:
            match = next(
                (
                    record for record in reversed(listing)
                    if record.file_name == placeholder.file_name and id(record) not in used
                ),
                None,
            )
        if match is None or id(match) in used:
            reconciled.append(placeholder)
            continue
        used.add(id(match))
        reconciled.append(match)
    return reconciled
