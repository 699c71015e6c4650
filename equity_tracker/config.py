# config.py
import argparse
import logging
import os
from dataclasses import MISSING, dataclass, fields
from pathlib import Path
from typing import Any, get_type_hints

import yaml

from equity_tracker.aggregator import RATIO_WEIGHTINGS
from equity_tracker.utils.type_utils import convert_type

logger: logging.Logger = logging.getLogger(__name__)

ENV_VAR: str = "EQUITY_TRACKER_ENV"

# Lowest-precedence values, used for anything the YAML files leave out
DEFAULTS: dict[str, Any] = {
    "db_path": "equity_tracker.db",
    "import_path": "holdings.csv",
    "backup_path": "equity_insight_backup.json",
    "log_config_path": "config/logging_config.yaml",
    "log_level": "INFO",
    "ratio_weighting": "lot",
    "market_data_max_retries": 3,
    "openai_model": "gpt-4o-mini",
    "drive_backup_filename": "equity_insight_backup.json",
}


def get_env() -> str:
    # Under pytest always 'test', otherwise EQUITY_TRACKER_ENV (default 'prod')
    if os.getenv("PYTEST_CURRENT_TEST"):
        return "test"
    env: str = os.getenv(ENV_VAR, "prod").strip().lower()
    logger.debug(f"Using environment: {env}")
    return env


@dataclass
class AppConfig:
    db_path: Path
    import_path: Path
    backup_path: Path
    log_config_path: Path
    log_level: str
    ratio_weighting: str
    market_data_max_retries: int
    openai_model: str
    drive_backup_filename: str

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        self.ratio_weighting = self.ratio_weighting.lower()
        if self.ratio_weighting not in RATIO_WEIGHTINGS:
            raise ValueError(
                f"ratio_weighting must be one of {RATIO_WEIGHTINGS}, got '{self.ratio_weighting}'"
            )
        if self.market_data_max_retries < 0:
            raise ValueError("market_data_max_retries cannot be negative")


def config_search_paths() -> list[Path]:
    return [
        Path("config"),
        Path.home() / ".equity-tracker" / "config",
        Path("/etc/equity-tracker/config"),
        Path(__file__).resolve().parent.parent / "config",
    ]


def read_yaml(path: Path) -> dict[str, Any]:
    """Mapping from a YAML file; {} when the file is absent or empty."""
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


class ConfigLoader:
    """Build AppConfig from defaults, YAML files and CLI overrides."""

    @staticmethod
    def _find_config_directory() -> Path:
        for directory in config_search_paths():
            if directory.is_dir():
                logger.debug(f"Using config directory: {directory}")
                return directory
        logger.warning("No config directory found, using built-in defaults")
        return Path("config")

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge two dictionaries. Values in `override` take precedence."""
        result: dict[str, Any] = dict(base)
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = ConfigLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _load_merged_yaml(
        env: str, config_dir: Path | None = None, file: Path | None = None
    ) -> dict[str, Any]:
        """DEFAULTS, then config.base.yaml, config.{env}.yaml and `file`, later wins."""
        config_dir = config_dir or ConfigLoader._find_config_directory()
        layers: list[dict[str, Any]] = [
            read_yaml(config_dir / "config.base.yaml"),
            read_yaml(config_dir / f"config.{env}.yaml"),
        ]
        if file:
            if not file.exists():
                raise FileNotFoundError(f"Config file not found: {file}")
            layers.append(read_yaml(file))

        merged: dict[str, Any] = dict(DEFAULTS)
        for layer in layers:
            merged = ConfigLoader._deep_merge(merged, layer)
        return merged

    @staticmethod
    def _dict_to_config(data: dict[str, Any], config_class: type[AppConfig]) -> AppConfig:
        """Coerce each field to its annotated type; unknown keys are ignored."""
        type_hints: dict[str, Any] = get_type_hints(config_class)
        init_args: dict[str, Any] = {}

        for field in fields(config_class):
            if field.name not in data:
                if field.default is MISSING:
                    raise ValueError(f"Missing required config value: '{field.name}'")
                continue
            expected_type = type_hints[field.name]
            try:
                init_args[field.name] = convert_type(data[field.name], expected_type)
            except ValueError as e:
                raise TypeError(f"Invalid type for '{field.name}': {e}") from e

        return config_class(**init_args)

    @staticmethod
    def load_app_config(
        env: str | None = None,
        overrides: dict[str, Any] | None = None,
        config_file: Path | None = None,
        config_dir: Path | None = None,
    ) -> AppConfig:
        """
        Precedence, lowest first: DEFAULTS, config.base.yaml,
        config.{env}.yaml, `config_file`, then `overrides` (usually CLI args).

        Raises:
            ValueError: missing or invalid value
            TypeError: a value cannot be coerced to its field type
            FileNotFoundError: `config_file` was given but does not exist
        """
        env = env or get_env()
        merged: dict[str, Any] = ConfigLoader._load_merged_yaml(
            env, config_dir=config_dir, file=config_file
        )
        if overrides:
            merged = ConfigLoader._deep_merge(merged, overrides)
        return ConfigLoader._dict_to_config(merged, AppConfig)

    @staticmethod
    def args_to_overrides(args: argparse.Namespace) -> dict[str, Any]:
        """Config overrides from parsed CLI args: AppConfig fields the user actually set."""
        names: set[str] = {field.name for field in fields(AppConfig)}
        return {name: value for name, value in vars(args).items() if name in names and value is not None}
