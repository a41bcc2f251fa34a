import json

import pytest

from conftest import day
from tracking_pipeline.core.backup import StoreFile
from tracking_pipeline.core.backup import store_file as store_module
from tracking_pipeline.core.backup.backup_codec import format_timestamp
from tracking_pipeline.core.errors import MalformedBackupError

ALPHA = "UCaaaaaaaaaaaaaaaaaaaaaa"


def test_missing_file_loads_empty_store(tmp_path):
    store = StoreFile(tmp_path / "channels.json").load()
    assert len(store) == 0


def test_save_and_reload_survives_restart(tmp_path, populated_store):
    store_file = StoreFile(tmp_path / "data" / "channels.json")
    store_file.save(populated_store)

    reloaded = StoreFile(store_file.path).load()

    assert [c.channel_id for c in reloaded.list_channels()] == [
        c.channel_id for c in populated_store.list_channels()
    ]
    assert reloaded.snapshot_count() == populated_store.snapshot_count()
    assert ([s.as_tuple() for s in reloaded.history(ALPHA)]
            == [s.as_tuple() for s in populated_store.history(ALPHA)])
    assert reloaded.get_channel(ALPHA).created_at == populated_store.get_channel(ALPHA).created_at


def test_store_file_carries_no_api_key(tmp_path, populated_store):
    store_file = StoreFile(tmp_path / "channels.json")
    store_file.save(populated_store)

    data = json.loads(store_file.path.read_text(encoding="utf-8"))
    assert "apiKey" not in data
    assert data["version"] == 1
    assert not (tmp_path / "channels.json.tmp").exists()


@pytest.mark.parametrize("content", [
    "{broken",
    "[]",
    '{"channels": {}, "stats": {}}',
    '{"channels": [], "stats": {"UCorphan": []}}',
])
def test_corrupt_store_file_raises(tmp_path, content):
    path = tmp_path / "channels.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(MalformedBackupError):
        StoreFile(path).load()


def test_same_day_entries_load_as_one_snapshot(tmp_path):
    path = tmp_path / "channels.json"
    path.write_text(json.dumps({
        "version": 1,
        "channels": [{"channelId": ALPHA, "title": "Alpha", "thumbnail": "", "customUrl": None,
                      "lastUpdated": None, "createdAt": format_timestamp(day(0))}],
        "stats": {ALPHA: [
            {"views": 1, "subscribers": 1, "videoCount": 1, "recordedAt": format_timestamp(day(3, hour=8))},
            {"views": 2, "subscribers": 2, "videoCount": 2, "recordedAt": format_timestamp(day(3, hour=20))},
        ]},
    }), encoding="utf-8")

    history = StoreFile(path).load().history(ALPHA)
    assert [s.views for s in history] == [2]


def test_failed_save_keeps_previous_file(tmp_path, populated_store, monkeypatch):
    store_file = StoreFile(tmp_path / "channels.json")
    store_file.save(populated_store)
    before = store_file.path.read_text(encoding="utf-8")

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(store_module.os, "replace", fail_replace)
    with pytest.raises(OSError):
        store_file.save(populated_store)

    assert store_file.path.read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["channels.json"]
