"""Configuration management for Portwarden."""

import logging
from dataclasses import dataclass, fields
from pathlib import Path

import platformdirs
import yaml

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Tunable timings, overridable from config.yaml."""

    kill_grace_seconds: float = 1.0
    dev_server_grace_seconds: float = 2.0
    monitor_interval_seconds: float = 5.0
    query_timeout_seconds: float = 5.0


def get_data_dir() -> Path:
    """Get the data directory for Portwarden.

    Returns:
        Path to data directory
    """
    data_dir = Path(platformdirs.user_data_dir("portwarden", "portwarden"))
    data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    return data_dir


def get_state_path() -> Path:
    """Get the session state file path.

    Returns:
        Path to session.json
    """
    return get_data_dir() / "session.json"


def get_log_path() -> Path:
    """Get the log file path.

    Returns:
        Path to log file
    """
    return get_data_dir() / "portwarden.log"


def get_settings_path() -> Path:
    """Get the optional settings file path.

    Returns:
        Path to config.yaml
    """
    return get_data_dir() / "config.yaml"


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults.

    A missing file is not an error. Unknown keys are ignored and values
    that are not positive numbers keep their default.

    Args:
        path: Settings file. Defaults to config.yaml in the data directory.

    Returns:
        Settings instance
    """
    path = path or get_settings_path()
    settings = Settings()

    if not path.exists():
        return settings

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return settings

    if not isinstance(data, dict):
        return settings

    for field in fields(Settings):
        if field.name not in data:
            continue
        value = data[field.name]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            logger.warning("Ignoring invalid value for %s: %r", field.name, value)
            continue
        setattr(settings, field.name, float(value))

    return settings
