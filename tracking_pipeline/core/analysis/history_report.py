"""
History Report Service
Tabular views of channel histories for the CLI and CSV reports.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from ..tracking.models import Channel, Metric, Snapshot
from ..tracking.timeseries_store import TimeSeriesStore

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "date",
    "recorded_at",
    "views",
    "views_delta",
    "subscribers",
    "subscribers_delta",
    "video_count",
    "video_count_delta",
]

SUMMARY_COLUMNS = [
    "channel_id",
    "title",
    "handle",
    "subscribers",
    "views",
    "video_count",
    "snapshots",
    "last_updated",
]

_METRIC_COLUMNS = {
    Metric.VIEWS: "views",
    Metric.SUBSCRIBERS: "subscribers",
    Metric.VIDEO_COUNT: "video_count",
}


def build_history_frame(history: Sequence[Snapshot]) -> pd.DataFrame:
    """
    History as a table, newest first, with the change since the previous day.
    The oldest row has a delta of 0 (nothing to compare against).
    """
    if not history:
        return pd.DataFrame(columns=HISTORY_COLUMNS)

    df = pd.DataFrame([
        {
            "recorded_at": s.recorded_at,
            "views": s.views,
            "subscribers": s.subscribers,
            "video_count": s.video_count,
        }
        for s in history
    ])
    df = df.sort_values(by="recorded_at", ascending=True).reset_index(drop=True)

    for column in _METRIC_COLUMNS.values():
        df[f"{column}_delta"] = df[column].diff().fillna(0).astype("int64")

    df["date"] = [ts.date().isoformat() for ts in df["recorded_at"]]
    df = df.sort_values(by="recorded_at", ascending=False).reset_index(drop=True)
    return df[HISTORY_COLUMNS]


def build_summary_frame(store: TimeSeriesStore) -> pd.DataFrame:
    """One row per tracked channel with its latest metrics."""
    rows = []
    for channel in store.list_channels():
        latest = store.latest_snapshot(channel.channel_id)
        rows.append({
            "channel_id": channel.channel_id,
            "title": channel.title,
            "handle": channel.display_handle,
            "subscribers": latest.subscribers if latest else None,
            "views": latest.views if latest else None,
            "video_count": latest.video_count if latest else None,
            "snapshots": len(store.history(channel.channel_id)),
            "last_updated": channel.last_updated.isoformat() if channel.last_updated else "",
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


class HistoryReport:
    """
    Service responsible for persisting channel history tables.

    Responsibilities:
    - Build per-channel history tables with daily deltas.
    - Save them as CSV files in the reports directory.
    """

    def __init__(self, reports_dir: Path):
        self._reports_dir = reports_dir
        self._reports_dir.mkdir(parents=True, exist_ok=True)

    def save_history(self, channel: Channel, history: Sequence[Snapshot]) -> Optional[Path]:
        """Save a channel's history table. Returns None when it is empty."""
        df = build_history_frame(history)
        if df.empty:
            logger.warning(f"No history recorded for {channel.title}. CSV will not be created.")
            return None

        output_path = self._reports_dir / f"history_{_safe_name(channel.channel_id)}.csv"
        df.to_csv(output_path, index=False, encoding="utf-8")
        logger.info(f"Saved {len(df)} history rows for {channel.title} to {output_path}")
        return output_path

    def save_all(self, store: TimeSeriesStore) -> List[Path]:
        paths = []
        for channel in store.list_channels():
            path = self.save_history(channel, store.history(channel.channel_id))
            if path:
                paths.append(path)
        return paths


def _safe_name(value: str) -> str:
    return re.sub(r"[^\w.-]", "_", value)
