"""
Range Filter
Recency windows for chart display and evenly spaced axis ticks.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..tracking.models import Metric, Snapshot, local_now, to_local


class ChartRange(Enum):
    """Relative recency window used to filter a history."""
    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "three_months"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        """Window length in days, None when unbounded."""
        return _RANGE_DAYS[self]


_RANGE_DAYS = {
    ChartRange.WEEK: 7,
    ChartRange.MONTH: 30,
    ChartRange.THREE_MONTHS: 90,
    ChartRange.ALL: None,
}


def filter_by_range(
    history: Sequence[Snapshot],
    chart_range: ChartRange,
    now: Optional[datetime] = None,
) -> List[Snapshot]:
    """
    Keep the snapshots recorded within the window ending at `now`.
    ALL returns the full input. No points are synthesized.
    """
    days = chart_range.days
    if days is None:
        return list(history)

    now = to_local(now) if now is not None else local_now()
    cutoff = now - timedelta(days=days)
    return [s for s in history if s.recorded_at >= cutoff]


def tick_marks(timestamps: Sequence[datetime], tick_count: int = 7) -> List[datetime]:
    """
    Evenly spaced timestamps from the earliest to the latest one.
    With fewer than two distinct timestamps they are returned as-is.
    """
    if tick_count < 2:
        raise ValueError(f"tick_count must be at least 2, got {tick_count}")

    if len(set(timestamps)) < 2:
        return list(timestamps)

    first = min(timestamps)
    last = max(timestamps)
    step = (last - first) / (tick_count - 1)
    ticks = [first + step * i for i in range(tick_count - 1)]
    ticks.append(last)
    return ticks


def axis_ticks(history: Sequence[Snapshot], tick_count: int = 7) -> List[datetime]:
    """Axis tick timestamps for a (filtered) snapshot history."""
    return tick_marks([s.recorded_at for s in history], tick_count)


def y_axis_domain(history: Sequence[Snapshot], metric: Metric) -> Tuple[int, int]:
    """
    Padded value range for charting a metric.
    Adds a 20% margin around the data and never goes below zero.
    """
    values = [metric.value_of(s) for s in history]
    if not values:
        return (0, 1)

    min_val = min(values)
    max_val = max(values)
    spread = max_val - min_val
    margin = max_val * 0.2 if spread == 0 else spread * 0.2

    lower = int(max(0, min_val - margin))
    upper = int(max_val + margin)

    if lower == upper:
        return (0, max(1, upper))
    return (lower, upper)
