"""
Channel Tracker Service
Adds channels and refreshes their metrics from a fetcher into the store.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..errors import DuplicateChannelError, FetchError, NotFoundError
from .models import Channel, Snapshot
from .timeseries_store import TimeSeriesStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshFailure:
    channel_id: str
    title: str
    error: str


@dataclass
class RefreshReport:
    """Per-channel outcome of a bulk refresh."""
    succeeded: List[str] = field(default_factory=list)
    failures: List[RefreshFailure] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __repr__(self) -> str:
        return (
            f"RefreshReport(succeeded={len(self.succeeded)}, "
            f"failed={len(self.failures)}, skipped={len(self.skipped)})"
        )


class ChannelTracker:
    """
    Coordinates the fetcher and the time series store.

    Responsibilities:
    - Add a channel after a successful fetch, with its first snapshot.
    - Refresh one channel (display fields, last_updated, today's snapshot).
    - Refresh every channel in turn, isolating per-channel failures.

    `fetcher` is any object with `fetch_channel(identifier, api_key)`
    returning a ChannelInfo (see core.youtube).
    """

    def __init__(self, store: TimeSeriesStore, fetcher):
        self._store = store
        self._fetcher = fetcher

    def add_channel(self, identifier: str, api_key: str) -> Channel:
        """
        Fetch a channel by ID, handle, URL or username and start tracking it.

        Raises:
            DuplicateChannelError: The resolved channel is already tracked.
            FetchError / NotFoundError: The fetch failed.
        """
        info = self._fetcher.fetch_channel(identifier, api_key)

        if info.channel_id in self._store:
            raise DuplicateChannelError(f"Channel already tracked: {info.title} ({info.channel_id})")

        channel = Channel(
            channel_id=info.channel_id,
            title=info.title,
            thumbnail_url=info.thumbnail_url,
            custom_handle=info.custom_url,
            created_at=info.fetched_at,
            last_updated=info.fetched_at
        )
        self._store.add_channel(channel)
        self._store.upsert(channel.channel_id, info.to_snapshot())
        return channel

    def refresh_channel(self, channel_id: str, api_key: str) -> Snapshot:
        """
        Fetch current metrics for a tracked channel and merge them.

        Raises:
            NotFoundError: The channel is not tracked or no longer exists.
            FetchError: The fetch failed.
        """
        self._store.get_channel(channel_id)
        info = self._fetcher.fetch_channel(channel_id, api_key)

        self._store.update_channel(
            channel_id,
            title=info.title,
            thumbnail_url=info.thumbnail_url,
            custom_handle=info.custom_url,
            last_updated=info.fetched_at
        )
        return self._store.upsert(channel_id, info.to_snapshot())

    def refresh_all(
        self,
        api_key: str,
        should_continue: Optional[Callable[[], bool]] = None
    ) -> RefreshReport:
        """
        Refresh every tracked channel sequentially.

        A failing channel is logged and recorded in the report; the remaining
        channels are still refreshed. `should_continue` is checked before
        each channel; once it returns False the rest are marked skipped.
        """
        report = RefreshReport()
        channels = self._store.list_channels()
        logger.info(f"Refreshing {len(channels)} channels")

        for channel in channels:
            if should_continue is not None and not should_continue():
                report.skipped.append(channel.channel_id)
                continue

            try:
                snapshot = self.refresh_channel(channel.channel_id, api_key)
            except (FetchError, NotFoundError) as e:
                logger.error(f"Refresh failed for {channel.title} ({channel.channel_id}): {e}")
                report.failures.append(RefreshFailure(channel.channel_id, channel.title, str(e)))
                continue

            report.succeeded.append(channel.channel_id)
            logger.info(
                f"✓ {channel.title}: {snapshot.subscribers:,} subscribers, "
                f"{snapshot.views:,} views, {snapshot.video_count:,} videos"
            )

        if report.skipped:
            logger.warning(f"Refresh stopped early, {len(report.skipped)} channels skipped")
        logger.info(f"Refresh complete: {report!r}")
        return report
