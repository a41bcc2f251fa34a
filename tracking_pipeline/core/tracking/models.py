"""
Tracking Domain Models
Channels, their dated metric snapshots and the metric selector.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional


def to_local(ts: datetime) -> datetime:
    """Normalize a timestamp to an aware datetime in the local zone."""
    return ts.astimezone()


def local_now() -> datetime:
    return datetime.now().astimezone()


def local_day(ts: datetime) -> date:
    """Local calendar day a timestamp falls on."""
    return ts.astimezone().date()


@dataclass
class Snapshot:
    """
    One dated measurement of a channel's metrics.
    Owned by exactly one channel inside a TimeSeriesStore.
    """
    views: int
    subscribers: int
    video_count: int
    recorded_at: datetime = field(default_factory=local_now)

    def __post_init__(self):
        for name in ("views", "subscribers", "video_count"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"Snapshot.{name} must be an integer, got {type(value).__name__}")
            if value < 0:
                raise ValueError(f"Snapshot.{name} must be non-negative, got {value}")
        self.recorded_at = to_local(self.recorded_at)

    @property
    def day(self) -> date:
        return local_day(self.recorded_at)

    def copy(self) -> "Snapshot":
        return replace(self)

    def as_tuple(self):
        return (self.views, self.subscribers, self.video_count, self.recorded_at)


@dataclass
class Channel:
    """Identity record for a tracked YouTube channel."""
    channel_id: str
    title: str
    thumbnail_url: str
    custom_handle: Optional[str] = None
    created_at: datetime = field(default_factory=local_now)
    last_updated: Optional[datetime] = None

    def __post_init__(self):
        if not self.channel_id:
            raise ValueError("Channel.channel_id cannot be empty")
        self.created_at = to_local(self.created_at)
        if self.last_updated is not None:
            self.last_updated = to_local(self.last_updated)

    @property
    def display_handle(self) -> str:
        """Handle when the channel has one, otherwise its ID."""
        return self.custom_handle or self.channel_id

    def copy(self) -> "Channel":
        return replace(self)


class Metric(Enum):
    """Selects which snapshot value feeds a delta or a chart."""
    VIEWS = "views"
    SUBSCRIBERS = "subscribers"
    VIDEO_COUNT = "videoCount"

    @property
    def accessor(self) -> Callable[[Snapshot], int]:
        return _ACCESSORS[self]

    def value_of(self, snapshot: Snapshot) -> int:
        return self.accessor(snapshot)

    @property
    def label(self) -> str:
        return _LABELS[self]


_ACCESSORS = {
    Metric.VIEWS: lambda s: s.views,
    Metric.SUBSCRIBERS: lambda s: s.subscribers,
    Metric.VIDEO_COUNT: lambda s: s.video_count,
}

_LABELS = {
    Metric.VIEWS: "Views",
    Metric.SUBSCRIBERS: "Subscribers",
    Metric.VIDEO_COUNT: "Videos",
}
