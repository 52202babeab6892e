"""
Persistent key-value stores for the credential and the user profile.

Values are opaque strings under fixed keys. The JSON file store writes the
whole document through a temporary file and os.replace so a crash never leaves
a half-written file behind.
"""

import asyncio
import json
import os
import shutil
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from common.logging_config import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Secure persistent storage: opaque get/set/delete by key."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """Process-local store, used in tests and for ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk, readable only by the owner.

    Disk access runs on the default executor under a thread lock. A corrupted
    file is backed up to <name>.bak and treated as empty.
    """

    def __init__(self, path: Path):
        """
        Initialize file store.

        Args:
            path: Location of the JSON document (parent directories are created)
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            backup_path = self.path.with_suffix(self.path.suffix + '.bak')
            logger.warning(f"Corrupted store at {self.path} ({e}), backing up to {backup_path}")
            try:
                shutil.copy(self.path, backup_path)
            except OSError as copy_error:
                logger.warning(f"Could not back up corrupted store: {copy_error}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Store at {self.path} is not a JSON object, ignoring contents")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def _get_sync(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def _set_sync(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def _delete_sync(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    async def get(self, key: str) -> Optional[str]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._get_sync, key)

    async def set(self, key: str, value: str) -> None:
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._set_sync, key, value)

    async def delete(self, key: str) -> None:
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._delete_sync, key)
