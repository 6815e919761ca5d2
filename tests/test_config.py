import json

import pytest

import config
import gameplay_models


ENVIRONMENT_NAMES = [
    "LANEBEAT_CONFIG_PATH",
    "LANEBEAT_LOOKAHEAD_SECONDS",
    "LANEBEAT_POLL_INTERVAL_SECONDS",
    "LANEBEAT_LATE_SLACK_SECONDS",
    "LANEBEAT_TICK_INTERVAL_MS",
    "LANEBEAT_PERFECT_WINDOW_SECONDS",
    "LANEBEAT_OK_WINDOW_SECONDS",
    "LANEBEAT_EXPIRY_GRACE_SECONDS",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for name in ENVIRONMENT_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_default_config_candidates", lambda: [tmp_path / "lanebeat_config.json"])


def test_defaults_without_any_file():
    app_config, resolved_path = config.load_config()

    assert resolved_path is None
    assert app_config.scheduler.lookahead_seconds == 0.1
    assert app_config.scheduler.poll_interval_seconds == 0.05
    assert app_config.judgement.perfect_window_seconds == 0.15
    assert app_config.judgement.ok_window_seconds == 0.22
    assert app_config.judgement.resolved_expiry_grace_seconds() == 0.22
    assert app_config.keys.lanes == {"Z": "ll", "C": "lm", "Left": "rm", "Right": "rr"}


def test_file_in_working_directory_is_used(tmp_path):
    config_path = tmp_path / "lanebeat_config.json"
    config_path.write_text(json.dumps({"judgement": {"perfect_window_seconds": 0.05, "ok_window_seconds": 0.1}}))

    app_config, resolved_path = config.load_config()

    assert resolved_path == config_path
    assert app_config.judgement.ok_window_seconds == 0.1


def test_environment_overrides_file_values(monkeypatch):
    monkeypatch.setenv("LANEBEAT_LOOKAHEAD_SECONDS", "0.2")
    monkeypatch.setenv("LANEBEAT_TICK_INTERVAL_MS", "8")
    monkeypatch.setenv("LANEBEAT_EXPIRY_GRACE_SECONDS", "0.5")

    app_config, _resolved_path = config.load_config()

    assert app_config.scheduler.lookahead_seconds == 0.2
    assert app_config.scheduler.tick_interval_ms == 8
    assert app_config.judgement.resolved_expiry_grace_seconds() == 0.5


def test_window_order_is_validated(monkeypatch):
    monkeypatch.setenv("LANEBEAT_PERFECT_WINDOW_SECONDS", "0.3")

    with pytest.raises(ValueError):
        config.load_config()


def test_poll_interval_cannot_exceed_lookahead(monkeypatch):
    monkeypatch.setenv("LANEBEAT_POLL_INTERVAL_SECONDS", "0.5")

    with pytest.raises(ValueError):
        config.load_config()


def test_explicit_missing_path_is_an_error(monkeypatch, tmp_path):
    monkeypatch.setenv("LANEBEAT_CONFIG_PATH", str(tmp_path / "nowhere.json"))

    with pytest.raises(FileNotFoundError):
        config.load_config()


def test_unknown_lane_in_key_map_is_rejected(tmp_path):
    config_path = tmp_path / "custom.json"
    config_path.write_text(json.dumps({"keys": {"lanes": {"A": "left"}}}))

    with pytest.raises(ValueError):
        config.load_config(config_path)


def test_non_object_root_is_rejected(tmp_path):
    config_path = tmp_path / "custom.json"
    config_path.write_text("[1, 2]")

    with pytest.raises(ValueError):
        config.load_config(config_path)


def test_default_keys_share_one_definition():
    first, _resolved_path = config.load_config()
    second, _resolved_path = config.load_config()

    assert first.keys.lanes == gameplay_models.DEFAULT_LANE_KEYS
    assert first.keys.play_pause == gameplay_models.DEFAULT_PLAY_PAUSE_KEY

    first.keys.lanes["Q"] = "ll"
    assert "Q" not in gameplay_models.DEFAULT_LANE_KEYS
    assert "Q" not in second.keys.lanes
