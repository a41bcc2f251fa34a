import pytest
import yaml

from conftest import VALID_KEY
from tracking_pipeline.core.analysis import ChartRange
from tracking_pipeline.core.config import AppConfig, ConfigLoader, ConfigValidationError
from tracking_pipeline.core.config import config_loader


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config(tmp_path):
    path = _write(tmp_path, f"""
api_key: "  {VALID_KEY}  "
storage:
  root: ./data
display:
  range: month
  tick_count: 5
""")
    config = ConfigLoader(path).load()

    assert config.api_key == VALID_KEY
    assert config.is_api_key_valid
    assert config.storage_root == "./data"
    assert config.display_range is ChartRange.MONTH
    assert config.tick_count == 5


def test_missing_sections_use_defaults(tmp_path):
    config = ConfigLoader(_write(tmp_path, "api_key: null\n")).load()

    assert config.api_key == ""
    assert not config.is_api_key_valid
    assert config.storage_root == "./storage"
    assert config.display_range is ChartRange.ALL
    assert config.tick_count == 7


def test_missing_file_raises(tmp_path):
    loader = ConfigLoader(tmp_path / "absent.yaml")
    assert not loader.exists()
    with pytest.raises(FileNotFoundError):
        loader.load()


@pytest.mark.parametrize("text", [
    "",
    "- just\n- a list\n",
    "api_key: [unclosed\n",
    "api_key: 12345\n",
    "storage:\n  root: '  '\n",
    "display:\n  range: fortnight\n",
    "display:\n  tick_count: 1\n",
    "display:\n  tick_count: true\n",
])
def test_invalid_configs_rejected(tmp_path, text):
    with pytest.raises(ConfigValidationError):
        ConfigLoader(_write(tmp_path, text)).load()


def test_save_then_load(tmp_path):
    loader = ConfigLoader(tmp_path / "nested" / "config.yaml")
    loader.save(AppConfig(api_key=VALID_KEY, storage_root="/srv/yt", display_range=ChartRange.WEEK, tick_count=4))

    data = yaml.safe_load(loader.config_path.read_text(encoding="utf-8"))
    assert data["storage"] == {"root": "/srv/yt"}

    config = loader.load()
    assert config.api_key == VALID_KEY
    assert config.display_range is ChartRange.WEEK
    assert config.tick_count == 4


def test_with_api_key_keeps_other_settings():
    config = AppConfig(storage_root="/srv/yt", display_range=ChartRange.THREE_MONTHS, tick_count=3)
    updated = config.with_api_key(VALID_KEY)

    assert updated.api_key == VALID_KEY
    assert config.api_key == ""
    assert updated.storage_root == "/srv/yt"
    assert updated.display_range is ChartRange.THREE_MONTHS
    assert updated.tick_count == 3


def test_repr_never_shows_the_key():
    assert VALID_KEY not in repr(AppConfig(api_key=VALID_KEY))


def test_failed_save_keeps_previous_config(tmp_path, monkeypatch):
    loader = ConfigLoader(tmp_path / "config.yaml")
    loader.save(AppConfig(api_key=VALID_KEY))

    def fail_dump(*args, **kwargs):
        raise yaml.YAMLError("cannot represent")

    monkeypatch.setattr(config_loader.yaml, "safe_dump", fail_dump)
    with pytest.raises(yaml.YAMLError):
        loader.save(AppConfig(api_key="AIzaOther"))

    monkeypatch.undo()
    assert loader.load().api_key == VALID_KEY
    assert [p.name for p in tmp_path.iterdir()] == ["config.yaml"]
