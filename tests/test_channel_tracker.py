import pytest

from conftest import FakeFetcher, VALID_KEY, day, info
from tracking_pipeline.core.errors import (
    DuplicateChannelError,
    InvalidCredentialError,
    NotFoundError,
    TransportError,
)
from tracking_pipeline.core.tracking import ChannelTracker

ALPHA = "UCaaaaaaaaaaaaaaaaaaaaaa"
BETA = "UCbbbbbbbbbbbbbbbbbbbbbb"
GAMMA = "UCcccccccccccccccccccccc"


def test_add_channel_creates_channel_and_first_snapshot(store):
    fetcher = FakeFetcher({"@alpha": info(ALPHA, "Alpha", 1000, 10, 1, fetched_at=day(3), custom_url="@alpha")})
    channel = ChannelTracker(store, fetcher).add_channel("@alpha", VALID_KEY)

    assert channel.channel_id == ALPHA
    assert channel.custom_handle == "@alpha"
    assert channel.created_at == day(3).astimezone()
    assert channel.last_updated == day(3).astimezone()
    assert [s.as_tuple() for s in store.history(ALPHA)] == [(1000, 10, 1, day(3).astimezone())]
    assert fetcher.calls == [("@alpha", VALID_KEY)]


def test_add_already_tracked_channel_is_rejected(populated_store):
    fetcher = FakeFetcher({"https://youtube.com/@alpha": info(ALPHA, "Alpha", 9999)})
    tracker = ChannelTracker(populated_store, fetcher)

    with pytest.raises(DuplicateChannelError):
        tracker.add_channel("https://youtube.com/@alpha", VALID_KEY)

    # no snapshot merged for the duplicate
    assert populated_store.latest_snapshot(ALPHA).views == 1700


def test_add_failed_fetch_leaves_store_empty(store):
    fetcher = FakeFetcher({"@ghost": NotFoundError("Channel not found: @ghost")})
    with pytest.raises(NotFoundError):
        ChannelTracker(store, fetcher).add_channel("@ghost", VALID_KEY)
    assert len(store) == 0


def test_refresh_same_day_overwrites_todays_snapshot(populated_store):
    fetcher = FakeFetcher({ALPHA: info(ALPHA, "Alpha Renamed", 1800, 15, 3, fetched_at=day(2, hour=20))})
    snapshot = ChannelTracker(populated_store, fetcher).refresh_channel(ALPHA, VALID_KEY)

    history = populated_store.history(ALPHA)
    assert len(history) == 3
    assert snapshot.views == 1800
    assert history[-1].subscribers == 15

    channel = populated_store.get_channel(ALPHA)
    assert channel.title == "Alpha Renamed"
    assert channel.last_updated == day(2, hour=20).astimezone()


def test_refresh_new_day_appends(populated_store):
    fetcher = FakeFetcher({BETA: info(BETA, "Beta", 60, 6, 3, fetched_at=day(4))})
    ChannelTracker(populated_store, fetcher).refresh_channel(BETA, VALID_KEY)
    assert len(populated_store.history(BETA)) == 2


def test_refresh_untracked_channel_does_not_fetch(store):
    fetcher = FakeFetcher({})
    with pytest.raises(NotFoundError):
        ChannelTracker(store, fetcher).refresh_channel(ALPHA, VALID_KEY)
    assert fetcher.calls == []


def test_refresh_all_isolates_failures(populated_store):
    fetcher = FakeFetcher({
        ALPHA: info(ALPHA, "Alpha", 2000, 20, 2, fetched_at=day(5)),
        BETA: TransportError("connection reset"),
        GAMMA: info(GAMMA, "Gamma", 7, 1, 1, fetched_at=day(5)),
    })
    report = ChannelTracker(populated_store, fetcher).refresh_all(VALID_KEY)

    assert report.succeeded == [ALPHA, GAMMA]
    assert [f.channel_id for f in report.failures] == [BETA]
    assert "connection reset" in report.failures[0].error
    assert not report.ok

    assert populated_store.latest_snapshot(ALPHA).views == 2000
    assert populated_store.latest_snapshot(GAMMA).views == 7
    assert len(populated_store.history(BETA)) == 1


def test_refresh_all_reports_bad_credential_per_channel(populated_store):
    error = InvalidCredentialError("YouTube rejected the API key")
    fetcher = FakeFetcher({ALPHA: error, BETA: error, GAMMA: error})
    report = ChannelTracker(populated_store, fetcher).refresh_all("AIzaBad")

    assert len(report.failures) == 3
    assert report.succeeded == []


def test_refresh_all_can_stop_early(populated_store):
    fetcher = FakeFetcher({
        ALPHA: info(ALPHA, "Alpha", 2000, 20, 2, fetched_at=day(5)),
        BETA: info(BETA, "Beta", 70, 7, 3, fetched_at=day(5)),
        GAMMA: info(GAMMA, "Gamma", 7, 1, 1, fetched_at=day(5)),
    })
    budget = iter([True, False, False])
    report = ChannelTracker(populated_store, fetcher).refresh_all(VALID_KEY, should_continue=lambda: next(budget))

    assert report.succeeded == [ALPHA]
    assert report.skipped == [BETA, GAMMA]
    assert report.ok
    assert [c[0] for c in fetcher.calls] == [ALPHA]


def test_refresh_all_on_empty_store(store):
    report = ChannelTracker(store, FakeFetcher({})).refresh_all(VALID_KEY)
    assert report.ok
    assert report.succeeded == []
