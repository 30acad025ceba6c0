"""Tests for config module."""

import platformdirs

from portwarden import config
from portwarden.config import Settings, load_settings


def test_defaults_without_file(temp_dir):
    assert load_settings(temp_dir / "missing.yaml") == Settings()


def test_load_settings_overrides(temp_dir):
    path = temp_dir / "config.yaml"
    path.write_text(
        "kill_grace_seconds: 0.5\n"
        "monitor_interval_seconds: 2\n"
        "unknown_key: true\n"
    )

    settings = load_settings(path)

    assert settings.kill_grace_seconds == 0.5
    assert settings.monitor_interval_seconds == 2.0
    assert settings.dev_server_grace_seconds == 2.0


def test_load_settings_rejects_invalid_values(temp_dir):
    path = temp_dir / "config.yaml"
    path.write_text("kill_grace_seconds: -1\nmonitor_interval_seconds: fast\nquery_timeout_seconds: yes\n")

    assert load_settings(path) == Settings()


def test_load_settings_bad_yaml(temp_dir):
    path = temp_dir / "config.yaml"
    path.write_text("kill_grace_seconds: [unclosed\n")

    assert load_settings(path) == Settings()


def test_load_settings_non_mapping(temp_dir):
    path = temp_dir / "config.yaml"
    path.write_text("- just\n- a list\n")

    assert load_settings(path) == Settings()


def test_paths_live_in_data_dir(temp_dir, monkeypatch):
    monkeypatch.setattr(platformdirs, "user_data_dir", lambda *args: str(temp_dir / "data"))

    assert config.get_state_path() == temp_dir / "data" / "session.json"
    assert config.get_log_path() == temp_dir / "data" / "portwarden.log"
    assert config.get_settings_path() == temp_dir / "data" / "config.yaml"
    assert (temp_dir / "data").is_dir()
