"""Configuration file management for focus-rank.

Reads and writes ~/.focus-rank/config.json for settings that don't belong in the DB
(e.g., where the DB and the log file live).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

CONFIG_DIR: Path = Path.home() / ".focus-rank"
DEFAULT_CONFIG_PATH: Path = CONFIG_DIR / "config.json"
DEFAULT_LOG_FILE: Path = CONFIG_DIR / "focus-rank.log"
DEFAULT_LOG_LEVEL = "INFO"


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(config_path: Path | None = None) -> Path | None:
    """Return the configured database path, or None to use the default."""
    raw = load_config(config_path).get("db_path")
    if raw:
        return Path(raw).expanduser()
    return None


def set_db_path(path: Path, config_path: Path | None = None) -> None:
    """Persist the database path to config."""
    config = load_config(config_path)
    config["db_path"] = str(path)
    save_config(config, config_path)


def get_log_file(config_path: Path | None = None) -> Path:
    raw = load_config(config_path).get("log_file")
    return Path(raw).expanduser() if raw else DEFAULT_LOG_FILE


def get_log_level(config_path: Path | None = None) -> int:
    """Return the configured log level. Unknown names fall back to INFO."""
    name = str(load_config(config_path).get("log_level", DEFAULT_LOG_LEVEL)).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
