import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Union

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tracking_pipeline.core.tracking import Channel, Snapshot, TimeSeriesStore
from tracking_pipeline.core.youtube import ChannelInfo

# Noon local time keeps every helper timestamp well inside its calendar day.
BASE = datetime(2024, 1, 1, 12, 0, 0)

VALID_KEY = "AIzaSyA1234567890abcdefghijklmnopqrstu"


def day(n: int, hour: int = 12, minute: int = 0) -> datetime:
    """Local timestamp n days after BASE at the given wall-clock time."""
    return (BASE + timedelta(days=n)).replace(hour=hour, minute=minute)


def snap(n: int, views: int = 0, subscribers: int = 0, video_count: int = 0, **kw) -> Snapshot:
    return Snapshot(views=views, subscribers=subscribers, video_count=video_count, recorded_at=day(n, **kw))


class FakeFetcher:
    """Stands in for YouTubeClient: serves canned ChannelInfo or raises."""

    def __init__(self, responses: Dict[str, Union[ChannelInfo, Exception]]):
        self.responses = responses
        self.calls: List[tuple] = []

    def fetch_channel(self, identifier: str, api_key: str) -> ChannelInfo:
        self.calls.append((identifier, api_key))
        result = self.responses[identifier]
        if isinstance(result, Exception):
            raise result
        return result


def info(channel_id: str, title: str = "", views: int = 0, subscribers: int = 0,
         video_count: int = 0, fetched_at: datetime = None, custom_url: str = None) -> ChannelInfo:
    return ChannelInfo(
        channel_id=channel_id,
        title=title or f"Channel {channel_id}",
        thumbnail_url=f"https://yt3.ggpht.com/{channel_id}.jpg",
        custom_url=custom_url,
        view_count=views,
        subscriber_count=subscribers,
        video_count=video_count,
        fetched_at=fetched_at or day(0),
    )


@pytest.fixture()
def store() -> TimeSeriesStore:
    return TimeSeriesStore()


@pytest.fixture()
def populated_store() -> TimeSeriesStore:
    """Two channels with a few days of history and one channel without any."""
    s = TimeSeriesStore()
    s.add_channel(Channel("UCaaaaaaaaaaaaaaaaaaaaaa", "Alpha", "https://img/a.jpg", "@alpha",
                          created_at=day(0), last_updated=day(2)))
    s.add_channel(Channel("UCbbbbbbbbbbbbbbbbbbbbbb", "Beta", "https://img/b.jpg", None,
                          created_at=day(1)))
    s.add_channel(Channel("UCcccccccccccccccccccccc", "Gamma", "https://img/c.jpg", "@gamma",
                          created_at=day(2)))

    s.upsert("UCaaaaaaaaaaaaaaaaaaaaaa", snap(0, views=1000, subscribers=10, video_count=1))
    s.upsert("UCaaaaaaaaaaaaaaaaaaaaaa", snap(1, views=1500, subscribers=12, video_count=2))
    s.upsert("UCaaaaaaaaaaaaaaaaaaaaaa", snap(2, views=1700, subscribers=11, video_count=2, minute=34))
    s.upsert("UCbbbbbbbbbbbbbbbbbbbbbb", snap(1, views=50, subscribers=5, video_count=3))
    return s
