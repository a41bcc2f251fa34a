"""
Channel tracking module: domain models, time series store and refresh service
"""

from .models import Channel, Metric, Snapshot
from .timeseries_store import TimeSeriesStore
from .channel_tracker import ChannelTracker, RefreshFailure, RefreshReport

__all__ = [
    "Channel",
    "ChannelTracker",
    "Metric",
    "RefreshFailure",
    "RefreshReport",
    "Snapshot",
    "TimeSeriesStore",
]
