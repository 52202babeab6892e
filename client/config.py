"""Configuration management for the file-sharing client."""

import json
import os
import shutil
import tempfile
from pathlib import Path

from common.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TOKEN_EXPIRY_DAYS,
    DEFAULT_UPLOAD_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.fileshare' / 'config.json'


class Config:
    """Manages client configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "base_url": os.environ.get("FILESHARE_API_URL", "http://localhost:8000"),
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "upload_timeout": DEFAULT_UPLOAD_TIMEOUT_SECONDS,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "retry_base_delay": 0.5,
        "token_expiry_days": DEFAULT_TOKEN_EXPIRY_DAYS,
        "storage_path": os.environ.get(
            "FILESHARE_STORAGE_PATH",
            str(Path.home() / '.fileshare' / 'secure_store.json')
        ),
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.fileshare/config.json)
        """
        self.config_path = Path(config_path)
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.fileshare' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except OSError as e:
                logger.warning(f"Could not write default config to {self.config_path}: {e}")
            return config

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root must be an object")
        except (json.JSONDecodeError, ValueError, OSError) as e:
            backup_path = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Corrupted config at {self.config_path} ({e}), backing up to {backup_path}")
            try:
                shutil.copy(self.config_path, backup_path)
            except OSError as copy_error:
                logger.warning(f"Could not back up corrupted config: {copy_error}")
            return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        config.update(data)
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def get_base_url(self) -> str:
        """
        Get backend base URL.

        Returns:
            Base URL string without trailing slash (e.g., "http://localhost:8000")
        """
        return str(self.data.get('base_url', 'http://localhost:8000')).rstrip('/')

    def get_timeout(self) -> float:
        """Get timeout in seconds for ordinary requests."""
        return self.data.get('timeout', DEFAULT_TIMEOUT_SECONDS)

    def get_upload_timeout(self) -> float:
        """Get base timeout in seconds for file uploads."""
        return self.data.get('upload_timeout', DEFAULT_UPLOAD_TIMEOUT_SECONDS)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries', 'retry_backoff_multiplier' and 'retry_base_delay'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
            'retry_base_delay': self.data.get('retry_base_delay', 0.5),
        }

    def get_token_expiry_days(self) -> int:
        """Get lifetime in days given to credentials that carry no expiry of their own."""
        return self.data.get('token_expiry_days', DEFAULT_TOKEN_EXPIRY_DAYS)

    def get_storage_path(self) -> Path:
        """Get path of the persistent credential/profile store."""
        return Path(self.data['storage_path']).expanduser()
