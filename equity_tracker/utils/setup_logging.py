"""Configure stdlib logging from the YAML dictConfig file named in AppConfig."""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any

import yaml

PACKAGE_LOGGER: str = "equity_tracker"


def _level_from_name(name: str) -> int | None:
    level: int | str = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def _load_yaml(config_path: Path) -> dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def setup_logging(config_path: Path, log_level: str) -> None:
    """
    Apply the logging config, then pin the package logger to `log_level`.

    Never raises: a missing or broken file falls back to basicConfig at INFO
    so later errors still reach the console.
    """
    try:
        logging.config.dictConfig(_load_yaml(Path(config_path)))
    except FileNotFoundError:
        print(f"Error: Logging config file not found at {config_path}", file=sys.stderr)
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Failed to load logging config from {config_path}")
        return
    except Exception as e:
        print(f"An unexpected error occurred during logging setup: {e}", file=sys.stderr)
        logging.basicConfig(level=logging.INFO)
        logging.error(f"An unexpected error occurred during logging setup: {e}")
        return

    level: int | None = _level_from_name(log_level)
    if level is None:
        logging.warning(f"Invalid log level '{log_level}' in config; keeping the YAML levels.")
        return

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    logging.debug(f"Logger '{PACKAGE_LOGGER}' set to {logging.getLevelName(level)}")
