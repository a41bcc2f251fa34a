"""
Delta Computer
Day-over-day change of a metric across a snapshot history.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from ..tracking.models import Metric, Snapshot
from .range_filter import ChartRange, filter_by_range


@dataclass(frozen=True)
class Delta:
    """Signed change of a metric between a snapshot and the one before it."""
    date: datetime
    value: int


@dataclass(frozen=True)
class DeltaBadge:
    """Display form of a non-zero delta."""
    text: str
    positive: bool


def daily_deltas(history: Sequence[Snapshot], metric: Metric) -> List[Delta]:
    """
    Deltas between chronologically adjacent snapshots.

    Returns one Delta per snapshot after the first, dated at the later
    snapshot. Fewer than two snapshots yield an empty list. Values are
    signed and never clamped.
    """
    ordered = sorted(history, key=lambda s: s.recorded_at)
    if len(ordered) < 2:
        return []

    value_of = metric.accessor
    return [
        Delta(date=current.recorded_at, value=value_of(current) - value_of(previous))
        for previous, current in zip(ordered, ordered[1:])
    ]


def deltas_in_range(
    history: Sequence[Snapshot],
    metric: Metric,
    chart_range: ChartRange,
    now: Optional[datetime] = None,
) -> List[Delta]:
    """Deltas over the snapshots that fall inside a recency window."""
    return daily_deltas(filter_by_range(history, chart_range, now), metric)


def delta_badge(value: int) -> Optional[DeltaBadge]:
    """
    Badge for a delta: None when unchanged, "+1,234" when up, "-50" when down.
    """
    if value == 0:
        return None
    if value > 0:
        return DeltaBadge(text=f"+{value:,}", positive=True)
    return DeltaBadge(text=f"{value:,}", positive=False)
