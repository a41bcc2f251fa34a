import pytest

from conftest import day, snap
from tracking_pipeline.core.analysis import ChartRange, daily_deltas, delta_badge, deltas_in_range
from tracking_pipeline.core.tracking import Metric


def test_single_delta_example():
    history = [snap(1, views=100), snap(2, views=150)]
    deltas = daily_deltas(history, Metric.VIEWS)

    assert len(deltas) == 1
    assert deltas[0].value == 50
    assert deltas[0].date == day(2).astimezone()


@pytest.mark.parametrize("length", [0, 1])
def test_too_few_points_yield_no_deltas(length):
    history = [snap(n, views=n) for n in range(length)]
    assert daily_deltas(history, Metric.VIEWS) == []


def test_length_is_one_less_than_history():
    history = [snap(n, subscribers=n * n) for n in range(8)]
    deltas = daily_deltas(history, Metric.SUBSCRIBERS)

    assert len(deltas) == 7
    assert [d.value for d in deltas] == [1, 3, 5, 7, 9, 11, 13]


def test_unordered_input_is_sorted_first():
    history = [snap(3, views=400), snap(1, views=100), snap(2, views=250)]
    deltas = daily_deltas(history, Metric.VIEWS)

    assert [d.value for d in deltas] == [150, 150]
    assert [d.date for d in deltas] == [day(2).astimezone(), day(3).astimezone()]


def test_deltas_are_signed_and_unclamped():
    history = [snap(1, subscribers=1000), snap(2, subscribers=940), snap(3, subscribers=940)]
    assert [d.value for d in daily_deltas(history, Metric.SUBSCRIBERS)] == [-60, 0]


def test_metric_selector_picks_video_count():
    history = [snap(1, views=10, video_count=4), snap(2, views=99, video_count=6)]
    assert daily_deltas(history, Metric.VIDEO_COUNT)[0].value == 2


def test_deltas_in_range_only_uses_recent_snapshots():
    history = [snap(n, views=n * 100) for n in range(0, 40)]
    deltas = deltas_in_range(history, Metric.VIEWS, ChartRange.WEEK, now=day(39))

    # days 32..39 remain, giving 7 deltas
    assert len(deltas) == 7
    assert all(d.value == 100 for d in deltas)


def test_delta_badge_display_convention():
    assert delta_badge(0) is None

    up = delta_badge(1234)
    assert up.text == "+1,234"
    assert up.positive

    down = delta_badge(-50)
    assert down.text == "-50"
    assert not down.positive
