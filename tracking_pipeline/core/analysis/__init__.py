"""
History analysis module: deltas, recency ranges and tabular reports
"""

from .delta_computer import Delta, DeltaBadge, daily_deltas, delta_badge, deltas_in_range
from .range_filter import ChartRange, axis_ticks, filter_by_range, tick_marks, y_axis_domain
from .history_report import HistoryReport, build_history_frame, build_summary_frame

__all__ = [
    "ChartRange",
    "Delta",
    "DeltaBadge",
    "HistoryReport",
    "axis_ticks",
    "build_history_frame",
    "build_summary_frame",
    "daily_deltas",
    "delta_badge",
    "deltas_in_range",
    "filter_by_range",
    "tick_marks",
    "y_axis_domain",
]
