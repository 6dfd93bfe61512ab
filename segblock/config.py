"""Configuration loading for segblock.

Loads settings from TOML config file with CLI override support.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli

from segblock.segments import (
    ALLOWED_SEGMENTS,
    DEFAULT_SEGMENTS,
    DEFAULT_UNBLOCK_HOURS,
    clamp_unblock_hours,
)
from segblock.sync.listeners import DEFAULT_ENDPOINT_URL

logger = logging.getLogger(__name__)


def get_default_config_path() -> Path:
    """Get the default config file path."""
    return Path.home() / ".config" / "segblock" / "segblock.toml"


def get_config_search_paths() -> list[Path]:
    """Get list of paths to search for config file."""
    return [
        Path("segblock.toml"),  # Current directory
        Path.home() / ".config" / "segblock" / "segblock.toml",
        Path("/etc/segblock/segblock.toml"),
    ]


def find_config_file() -> Optional[Path]:
    """Find the first existing config file."""
    for path in get_config_search_paths():
        if path.exists():
            return path
    return None


@dataclass
class Config:
    """Loaded configuration with all sections."""

    # Storage
    db_path: Path = field(default_factory=lambda: Path.home() / ".local" / "share" / "segblock" / "rules.db")

    # Defaults for new rules
    default_segments: int = DEFAULT_SEGMENTS
    default_unblock_hours: int = DEFAULT_UNBLOCK_HOURS

    # Enforcement sync
    sync_enabled: bool = False
    sync_endpoint_url: str = DEFAULT_ENDPOINT_URL
    sync_timeout: float = 5.0
    sync_attempts: int = 1


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from TOML file.

    Args:
        config_path: Explicit path to config file, or None to search

    Returns:
        Config object with loaded values
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        logger.debug("No config file found, using defaults")
        return config

    logger.info(f"Loading config from {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.warning(f"Failed to load config file: {e}")
        return config

    # Storage section
    if "storage" in data:
        storage = data["storage"]
        if "path" in storage:
            config.db_path = Path(storage["path"]).expanduser()

    # Defaults section
    if "defaults" in data:
        defaults = data["defaults"]
        if "segments" in defaults:
            if defaults["segments"] in ALLOWED_SEGMENTS:
                config.default_segments = defaults["segments"]
            else:
                logger.warning(
                    f"Ignoring defaults.segments={defaults['segments']!r}, "
                    f"must be one of {list(ALLOWED_SEGMENTS)}"
                )
        if "unblock_hours" in defaults:
            value = defaults["unblock_hours"]
            if isinstance(value, int) and not isinstance(value, bool):
                config.default_unblock_hours = value
            else:
                logger.warning(f"Ignoring defaults.unblock_hours={value!r}, must be an integer")

    # Keep the default hours inside the default segment's range
    config.default_unblock_hours = clamp_unblock_hours(
        config.default_unblock_hours, config.default_segments
    )

    # Sync section
    if "sync" in data:
        sync = data["sync"]
        if "enabled" in sync:
            config.sync_enabled = sync["enabled"]
        if "endpoint_url" in sync:
            config.sync_endpoint_url = sync["endpoint_url"]
        if "timeout" in sync:
            value = sync["timeout"]
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                config.sync_timeout = float(value)
            else:
                logger.warning(f"Ignoring sync.timeout={value!r}, must be a number")
        if "attempts" in sync:
            value = sync["attempts"]
            if isinstance(value, int) and not isinstance(value, bool):
                config.sync_attempts = max(1, value)
            else:
                logger.warning(f"Ignoring sync.attempts={value!r}, must be an integer")

    return config


def merge_cli_options(config: Config, **cli_options: Any) -> Config:
    """Merge CLI options into config (CLI takes precedence).

    Args:
        config: Base config from file
        **cli_options: CLI option overrides (None values are ignored)

    Returns:
        Config with CLI overrides applied
    """
    mappings = {
        "db": "db_path",
        "sync": "sync_enabled",
        "endpoint": "sync_endpoint_url",
    }

    for cli_name, config_name in mappings.items():
        if cli_name in cli_options:
            value = cli_options[cli_name]
            if value is not None and value != "":
                if cli_name == "db":
                    value = Path(value)
                setattr(config, config_name, value)

    return config
