"""
Storage Manager for the YouTube Channel Tracker
Directory layout for the store, backups, reports and logs.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Service responsible for managing local storage and organizing project files.

    Responsibilities:
    - Create and validate storage directory structure.
    - Provide canonical paths for the store file, backups, reports and logs.
    - Archive backup files that were imported.
    """

    STORE_FILENAME = "channels.json"

    def __init__(self, storage_root: str = "./storage"):
        """
        Initialize the StorageManager.

        Args:
            storage_root (str): The base directory for all storage.
        """
        self._root = Path(storage_root).resolve()

        self._data_dir = self._root / "data"
        self._backups_dir = self._root / "backups"
        self._reports_dir = self._root / "reports"
        self._logs_dir = self._root / "logs"

        self._ensure_directories()

    def _ensure_directories(self):
        """Ensures that all required storage directories exist."""
        dirs = [
            self._data_dir,
            self._backups_dir,
            self._reports_dir,
            self._logs_dir
        ]
        for d in dirs:
            d.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Storage directory verified: {d}")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def data_path(self) -> Path:
        return self._data_dir

    @property
    def store_path(self) -> Path:
        return self._data_dir / self.STORE_FILENAME

    @property
    def backups_path(self) -> Path:
        return self._backups_dir

    @property
    def reports_path(self) -> Path:
        return self._reports_dir

    @property
    def logs_path(self) -> Path:
        return self._logs_dir

    def backup_file(self, when: Optional[datetime] = None, label: str = "backup") -> Path:
        """Timestamped path for a new backup file inside backups/."""
        when = when or datetime.now()
        return self._backups_dir / f"yt_tracker_{label}_{when.strftime('%Y%m%d_%H%M%S')}.json"

    def archive_backup(self, source_path: Path) -> bool:
        """
        Copies an imported backup file into the backups directory.
        """
        return self._persist_file(source_path, self._backups_dir)

    def _persist_file(self, source: Path, destination_dir: Path) -> bool:
        """
        Copies a file to the specified storage directory.
        """
        if not source.exists():
            logger.warning(f"Source file does not exist: {source}")
            return False

        if source.stat().st_size == 0:
            logger.warning(f"Source file is empty (0 bytes): {source}")
            return False

        destination = destination_dir / source.name

        if source.resolve() == destination.resolve():
            return True

        if destination.exists():
            logger.warning(f"Destination already exists, skipping: {destination}")
            return False

        try:
            shutil.copy2(source, destination)
            logger.info(f"✓ File copied to storage: {destination.name}")
            return True
        except OSError as e:
            logger.error(f"Error persisting file {source.name}: {e}")
            return False

    def __repr__(self):
        return f"StorageManager(root={self._root})"
