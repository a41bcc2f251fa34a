"""
Time Series Store
Owns tracked channels and their day-keyed snapshot histories.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from ..errors import DuplicateChannelError, NotFoundError
from .models import Channel, Snapshot, to_local

logger = logging.getLogger(__name__)

_UNSET = object()


class TimeSeriesStore:
    """
    In-memory store of channels and their metric snapshots.

    Responsibilities:
    - Keep channel IDs unique.
    - Merge new snapshots with the once-per-local-calendar-day rule.
    - Cascade snapshot removal when a channel is removed.

    Histories are kept in a mapping keyed by channel ID, so snapshots never
    reference their channel. Access is assumed to be serialized by the caller.
    """

    def __init__(self):
        self._channels: Dict[str, Channel] = {}
        self._histories: Dict[str, List[Snapshot]] = {}

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def add_channel(self, channel: Channel) -> Channel:
        """
        Start tracking a channel with an empty history.

        Raises:
            DuplicateChannelError: If the channel ID is already tracked.
        """
        if channel.channel_id in self._channels:
            raise DuplicateChannelError(f"Channel already tracked: {channel.channel_id}")

        self._channels[channel.channel_id] = channel
        self._histories[channel.channel_id] = []
        logger.info(f"Channel added: {channel.title} ({channel.channel_id})")
        return channel

    def remove_channel(self, channel_id: str) -> Channel:
        """
        Stop tracking a channel and drop its whole history.

        Raises:
            NotFoundError: If the channel ID is not tracked.
        """
        channel = self.get_channel(channel_id)
        del self._channels[channel_id]
        removed = self._histories.pop(channel_id, [])
        logger.info(f"Channel removed: {channel.title} ({channel_id}), {len(removed)} snapshots dropped")
        return channel

    def get_channel(self, channel_id: str) -> Channel:
        try:
            return self._channels[channel_id]
        except KeyError:
            raise NotFoundError(f"Channel not tracked: {channel_id}") from None

    def list_channels(self) -> List[Channel]:
        """Tracked channels in ascending creation order."""
        return sorted(self._channels.values(), key=lambda c: c.created_at)

    def update_channel(
        self,
        channel_id: str,
        title: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
        custom_handle=_UNSET,
        last_updated: Optional[datetime] = None,
    ) -> Channel:
        """Refresh the mutable display fields of a channel."""
        channel = self.get_channel(channel_id)
        if title is not None:
            channel.title = title
        if thumbnail_url is not None:
            channel.thumbnail_url = thumbnail_url
        if custom_handle is not _UNSET:
            channel.custom_handle = custom_handle
        if last_updated is not None:
            channel.last_updated = to_local(last_updated)
        return channel

    def history(self, channel_id: str) -> List[Snapshot]:
        """
        Copies of a channel's snapshots.
        Storage order is not guaranteed to be chronological.
        """
        self.get_channel(channel_id)
        return [s.copy() for s in self._histories[channel_id]]

    def latest_snapshot(self, channel_id: str) -> Optional[Snapshot]:
        snapshots = self.history(channel_id)
        if not snapshots:
            return None
        return max(snapshots, key=lambda s: s.recorded_at)

    def snapshot_count(self) -> int:
        return sum(len(h) for h in self._histories.values())

    def upsert(self, channel_id: str, snapshot: Snapshot) -> Snapshot:
        """
        Merge a snapshot into a channel's history.

        If a stored snapshot falls on the same local calendar day, its values
        and timestamp are overwritten in place (latest measurement wins).
        Otherwise a copy of the candidate is appended.

        Raises:
            NotFoundError: If the channel ID is not tracked.
        """
        self.get_channel(channel_id)
        history = self._histories[channel_id]
        day = snapshot.day

        for existing in history:
            if existing.day == day:
                existing.views = snapshot.views
                existing.subscribers = snapshot.subscribers
                existing.video_count = snapshot.video_count
                existing.recorded_at = snapshot.recorded_at
                logger.debug(f"Snapshot for {channel_id} on {day} overwritten")
                return existing

        stored = snapshot.copy()
        history.append(stored)
        logger.debug(f"Snapshot for {channel_id} on {day} appended")
        return stored

    def replace_all(
        self,
        channels: Iterable[Channel],
        histories: Mapping[str, Iterable[Snapshot]],
    ) -> None:
        """
        Replace the whole dataset in one step.
        The new data is fully built before the store is touched.
        """
        new_channels: Dict[str, Channel] = {}
        for channel in channels:
            if channel.channel_id in new_channels:
                raise DuplicateChannelError(f"Duplicate channel in replacement: {channel.channel_id}")
            new_channels[channel.channel_id] = channel

        unknown = set(histories) - set(new_channels)
        if unknown:
            raise NotFoundError(f"History given for untracked channels: {sorted(unknown)}")

        new_histories = {
            channel_id: list(histories.get(channel_id, []))
            for channel_id in new_channels
        }

        self._channels, self._histories = new_channels, new_histories
        logger.info(
            f"Store replaced: {len(new_channels)} channels, "
            f"{self.snapshot_count()} snapshots"
        )

    def __repr__(self) -> str:
        return f"TimeSeriesStore(channels={len(self._channels)}, snapshots={self.snapshot_count()})"
