#!/usr/bin/env python3
"""
Configuration management
"""

import os
import sys
import yaml
from pathlib import Path
from dataclasses import dataclass, field, asdict

APP_DIR_NAME = "FitWell"
DATABASE_FILENAME = "fitwell.db"


def default_data_dir() -> Path:
    """Per-OS application data directory"""
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_DIR_NAME


def default_database_path() -> str:
    return str(default_data_dir() / DATABASE_FILENAME)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Application configuration"""
    # Storage
    database_path: str = field(default_factory=default_database_path)
    journal_mode: str = "WAL"
    echo_sql: bool = False

    # Profiles
    default_avatar_color: str = "#6366f1"

    # Logging
    log_level: str = "INFO"


def load_config(config_file: str = "config.yaml") -> Config:
    """Load configuration from file or environment variables"""
    config_path = Path(config_file)

    # Load from file if exists
    if config_path.exists():
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        return Config(**config_data)

    # Load from environment variables
    return Config(
        database_path=os.getenv("FITWELL_DB_PATH", default_database_path()),
        journal_mode=os.getenv("FITWELL_JOURNAL_MODE", "WAL"),
        echo_sql=_env_flag("FITWELL_ECHO_SQL"),
        log_level=os.getenv("FITWELL_LOG_LEVEL", "INFO"),
    )


def create_sample_config(config_file: str = "config.yaml") -> bool:
    """Create a sample configuration file, returns True if one was written"""
    config_path = Path(config_file)
    if config_path.exists():
        return False

    sample_config = asdict(Config())

    with open(config_path, 'w') as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return True
