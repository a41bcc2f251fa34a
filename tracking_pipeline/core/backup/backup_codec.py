"""
Backup Codec
Whole-dataset export and full-replace restore of the channel store.
"""

import json
import logging
import os
import uuid
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..errors import MalformedBackupError, SourceUnavailableError
from ..tracking.models import Channel, Snapshot, local_now, to_local
from ..tracking.timeseries_store import TimeSeriesStore

logger = logging.getLogger(__name__)

# Older exports (web version) spelled the snapshot timestamp key this way.
_LEGACY_RECORDED_AT = "recordeAt"


@dataclass
class BackupDocument:
    """
    Flat, serializable projection of the whole store plus the API key.
    `snapshots_by_channel` maps channel IDs to snapshot projections.
    """
    credential: str
    channels: List[Dict[str, Any]] = field(default_factory=list)
    snapshots_by_channel: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiKey": self.credential,
            "channels": self.channels,
            "stats": self.snapshots_by_channel,
        }

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "BackupDocument":
        """
        Validate the top-level shape of a parsed backup.
        Field-level validation happens in import_document.
        """
        if not isinstance(data, dict):
            raise MalformedBackupError("Backup must be a JSON object")

        credential = data.get("apiKey")
        if not isinstance(credential, str):
            raise MalformedBackupError("Field 'apiKey' must be a string")

        channels = data.get("channels")
        if not isinstance(channels, list):
            raise MalformedBackupError("Field 'channels' must be a list")

        stats = data.get("stats", {})
        if not isinstance(stats, dict):
            raise MalformedBackupError("Field 'stats' must be a mapping of channel IDs to lists")

        return cls(credential=credential, channels=channels, snapshots_by_channel=stats)

    @classmethod
    def loads(cls, text: str) -> "BackupDocument":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedBackupError(f"Backup is not valid JSON: {e}") from e
        return cls.from_dict(data)


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of a restore; the caller stores `credential` as the new API key."""
    credential: str
    channel_count: int
    snapshot_count: int


def format_timestamp(ts: datetime) -> str:
    """ISO 8601 in UTC with a 'Z' suffix, keeping microseconds."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: Any, where: str) -> datetime:
    if not isinstance(value, str):
        raise MalformedBackupError(f"{where} must be an ISO 8601 string")
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedBackupError(f"{where} is not a valid timestamp: {value!r}") from e
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return to_local(ts)


def encode_channel(channel: Channel) -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "channelId": channel.channel_id,
        "title": channel.title,
        "thumbnail": channel.thumbnail_url,
        "customUrl": channel.custom_handle,
        "lastUpdated": format_timestamp(channel.last_updated) if channel.last_updated else None,
        "createdAt": format_timestamp(channel.created_at),
    }


def encode_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "views": snapshot.views,
        "subscribers": snapshot.subscribers,
        "videoCount": snapshot.video_count,
        "recordedAt": format_timestamp(snapshot.recorded_at),
    }


def decode_channel(data: Any, index: int, default_created_at: datetime) -> Channel:
    where = f"channels[{index}]"
    if not isinstance(data, dict):
        raise MalformedBackupError(f"{where} must be an object")

    channel_id = _require_str(data, "channelId", where)
    if not channel_id:
        raise MalformedBackupError(f"{where}.channelId cannot be empty")
    title = _require_str(data, "title", where)
    thumbnail = _require_str(data, "thumbnail", where)

    custom_url = data.get("customUrl")
    if custom_url is not None and not isinstance(custom_url, str):
        raise MalformedBackupError(f"{where}.customUrl must be a string or null")

    last_updated = data.get("lastUpdated")
    if last_updated is not None:
        last_updated = parse_timestamp(last_updated, f"{where}.lastUpdated")

    created_at = data.get("createdAt")
    if created_at is not None:
        created_at = parse_timestamp(created_at, f"{where}.createdAt")
    else:
        created_at = default_created_at

    return Channel(
        channel_id=channel_id,
        title=title,
        thumbnail_url=thumbnail,
        custom_handle=custom_url,
        created_at=created_at,
        last_updated=last_updated,
    )


def decode_snapshot(data: Any, where: str) -> Snapshot:
    if not isinstance(data, dict):
        raise MalformedBackupError(f"{where} must be an object")

    counts = {}
    for key in ("views", "subscribers", "videoCount"):
        value = data.get(key)
        if not isinstance(value, int) or isinstance(value, bool):
            raise MalformedBackupError(f"{where}.{key} must be an integer")
        if value < 0:
            raise MalformedBackupError(f"{where}.{key} must be non-negative, got {value}")
        counts[key] = value

    raw_ts = data.get("recordedAt", data.get(_LEGACY_RECORDED_AT))
    recorded_at = parse_timestamp(raw_ts, f"{where}.recordedAt")

    return Snapshot(
        views=counts["views"],
        subscribers=counts["subscribers"],
        video_count=counts["videoCount"],
        recorded_at=recorded_at,
    )


def encode_dataset(store: TimeSeriesStore) -> Tuple[List[Dict[str, Any]], Dict[str, List[Dict[str, Any]]]]:
    """Channels ordered by creation, snapshots ordered by recording time."""
    channels = []
    stats = {}
    for channel in store.list_channels():
        channels.append(encode_channel(channel))
        history = sorted(store.history(channel.channel_id), key=lambda s: s.recorded_at)
        stats[channel.channel_id] = [encode_snapshot(s) for s in history]
    return channels, stats


def decode_dataset(
    channels_data: List[Any],
    stats_data: Dict[str, Any],
    default_created_at: Optional[datetime] = None,
) -> Tuple[List[Channel], Dict[str, List[Snapshot]]]:
    """
    Rebuild channels and histories from their projections.
    Raises MalformedBackupError on the first structural problem.
    """
    default_created_at = default_created_at or local_now()

    channels: List[Channel] = []
    seen = set()
    for index, data in enumerate(channels_data):
        channel = decode_channel(data, index, default_created_at)
        if channel.channel_id in seen:
            raise MalformedBackupError(f"Duplicate channel in backup: {channel.channel_id}")
        seen.add(channel.channel_id)
        channels.append(channel)

    orphans = sorted(k for k in stats_data if k not in seen)
    if orphans:
        raise MalformedBackupError(f"Stats reference channels missing from 'channels': {orphans}")

    histories: Dict[str, List[Snapshot]] = {}
    for channel_id, entries in stats_data.items():
        if not isinstance(entries, list):
            raise MalformedBackupError(f"stats[{channel_id!r}] must be a list")
        snapshots = [
            decode_snapshot(entry, f"stats[{channel_id!r}][{i}]")
            for i, entry in enumerate(entries)
        ]
        histories[channel_id] = _latest_per_day(channel_id, snapshots)

    return channels, histories


def export_document(store: TimeSeriesStore, credential: str) -> BackupDocument:
    """
    Flatten every channel and its full history plus the API key.
    Each serialized channel and snapshot gets a fresh transport-only ID.
    """
    channels, stats = encode_dataset(store)
    logger.info(f"Exported {len(channels)} channels, {store.snapshot_count()} snapshots")
    return BackupDocument(credential=credential, channels=channels, snapshots_by_channel=stats)


def import_document(store: TimeSeriesStore, document: BackupDocument) -> RestoreResult:
    """
    Replace the whole store with the contents of a backup.

    The document is fully validated and decoded before the store is touched,
    then swapped in with a single replace_all call. A malformed document
    leaves the store exactly as it was.

    Channels keep their `createdAt` when the backup carries it; older
    backups without it get the import time.

    Raises:
        MalformedBackupError: If the document structure is invalid.
    """
    channels, histories = decode_dataset(
        document.channels,
        document.snapshots_by_channel,
        default_created_at=local_now(),
    )

    store.replace_all(channels, histories)

    snapshot_count = sum(len(h) for h in histories.values())
    logger.info(f"Restored {len(channels)} channels, {snapshot_count} snapshots from backup")
    return RestoreResult(
        credential=document.credential,
        channel_count=len(channels),
        snapshot_count=snapshot_count,
    )


def read_backup(path: Path) -> BackupDocument:
    """
    Read a backup file.

    Raises:
        SourceUnavailableError: The file cannot be read or is not UTF-8.
        MalformedBackupError: The content is not a valid backup.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailableError(f"Cannot read backup {path}: {e}") from e
    return BackupDocument.loads(text)


def write_backup(document: BackupDocument, path: Path) -> Path:
    """Write a backup file atomically as UTF-8 JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(document.dumps())
        os.replace(tmp, path)
    except Exception:
        with suppress(FileNotFoundError):
            tmp.unlink()
        raise
    logger.info(f"Backup written to {path}")
    return path


def _latest_per_day(channel_id: str, snapshots: List[Snapshot]) -> List[Snapshot]:
    """Collapse snapshots sharing a local calendar day into the latest one."""
    by_day: Dict[Any, Snapshot] = {}
    for snapshot in sorted(snapshots, key=lambda s: s.recorded_at):
        by_day[snapshot.day] = snapshot

    dropped = len(snapshots) - len(by_day)
    if dropped:
        logger.warning(f"Dropped {dropped} same-day snapshots for {channel_id}, kept the latest per day")
    return list(by_day.values())


def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise MalformedBackupError(f"{where}.{key} must be a string")
    return value
