"""
Channel Information Domain Model
Result of fetching a channel from the YouTube Data API.
"""

from datetime import datetime
from typing import Optional

from ..tracking.models import Snapshot, local_now


class ChannelInfo:
    """
    Domain model representing a fetched YouTube channel.
    Carries the display fields and the metrics measured at fetch time.
    """

    def __init__(
        self,
        channel_id: str,
        title: str,
        thumbnail_url: str = "",
        custom_url: Optional[str] = None,
        view_count: int = 0,
        subscriber_count: int = 0,
        video_count: int = 0,
        fetched_at: Optional[datetime] = None
    ):
        self.channel_id = channel_id
        self.title = title
        self.thumbnail_url = thumbnail_url
        self.custom_url = custom_url
        self.view_count = view_count
        self.subscriber_count = subscriber_count
        self.video_count = video_count
        self.fetched_at = fetched_at or local_now()

    def to_snapshot(self) -> Snapshot:
        """Metrics of this fetch as a snapshot recorded at fetch time."""
        return Snapshot(
            views=self.view_count,
            subscribers=self.subscriber_count,
            video_count=self.video_count,
            recorded_at=self.fetched_at
        )

    def __repr__(self) -> str:
        return f"ChannelInfo(title={self.title!r}, handle={self.custom_url!r}, id={self.channel_id!r})"
