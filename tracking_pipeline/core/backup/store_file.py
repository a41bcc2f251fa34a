"""
Store File
Durable JSON persistence for a TimeSeriesStore across process restarts.
"""

import json
import logging
import os
from contextlib import suppress
from pathlib import Path

from ..errors import MalformedBackupError, SourceUnavailableError
from ..tracking.timeseries_store import TimeSeriesStore
from .backup_codec import decode_dataset, encode_dataset

logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = 1


class StoreFile:
    """
    Persistence adapter that keeps the store in a single UTF-8 JSON file.

    Uses the backup projection for channels and snapshots (without the API
    key) and always records channel creation times. Writes are atomic.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TimeSeriesStore:
        """
        Load the store. A missing file yields an empty store.

        Raises:
            SourceUnavailableError: The file exists but cannot be read.
            MalformedBackupError: The file content is not a valid store.
        """
        store = TimeSeriesStore()
        if not self._path.exists():
            logger.info(f"No store file at {self._path}, starting empty")
            return store

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedBackupError(f"Store file {self._path} is not valid JSON: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnavailableError(f"Cannot read store file {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise MalformedBackupError(f"Store file {self._path} must contain a JSON object")

        channels_data = data.get("channels", [])
        stats_data = data.get("stats", {})
        if not isinstance(channels_data, list) or not isinstance(stats_data, dict):
            raise MalformedBackupError(f"Store file {self._path} has an invalid layout")

        channels, histories = decode_dataset(channels_data, stats_data)
        store.replace_all(channels, histories)
        logger.info(f"Loaded {len(store)} channels from {self._path}")
        return store

    def save(self, store: TimeSeriesStore) -> None:
        channels, stats = encode_dataset(store)
        payload = {
            "version": STORE_FORMAT_VERSION,
            "channels": channels,
            "stats": stats,
        }

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self._path)
        except Exception:
            with suppress(FileNotFoundError):
                tmp.unlink()
            raise
        logger.debug(f"Store saved to {self._path}")

    def __repr__(self) -> str:
        return f"StoreFile(path={self._path})"
