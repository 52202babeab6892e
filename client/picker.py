"""File picker collaborators."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List
from urllib.parse import unquote, urlparse

from client.adapters.resolver import decode_name
from client.mime import normalize_mime_type
from common.constants import DEFAULT_FILE_NAME
from common.logging_config import get_logger
from common.types import PickedFile

logger = get_logger(__name__)


def local_path(local_ref: str) -> Path:
    """Filesystem path for a picker reference (plain path or file:// URI)."""
    if local_ref.startswith('file://'):
        return Path(unquote(urlparse(local_ref).path))
    return Path(local_ref).expanduser()


class FilePicker(ABC):
    """Lets the user choose local files for upload."""

    @abstractmethod
    async def pick(self) -> List[PickedFile]:
        ...


class PathPicker(FilePicker):
    """Picker over a fixed list of local paths; missing or non-regular files are skipped."""

    def __init__(self, paths: Iterable[str]):
        self.paths = list(paths)

    async def pick(self) -> List[PickedFile]:
        picked = []
        for raw_path in self.paths:
            path = local_path(raw_path)
            if not path.is_file():
                logger.warning(f"Skipping {raw_path}: not a regular file")
                continue
            picked.append(PickedFile(
                local_ref=str(path.resolve()),
                display_name=path.name,
                mime_type_hint=normalize_mime_type(None, path.name),
                size_hint=path.stat().st_size,
            ))
        return picked


def upload_name(file: PickedFile) -> str:
    """Decoded name a picked file is uploaded and reported under."""
    return decode_name(file.display_name, "") or local_path(file.local_ref).name or DEFAULT_FILE_NAME
