"""Expose AppConfig fields as global command-line overrides."""

import argparse
from dataclasses import Field, fields
from typing import Any, ClassVar, get_origin

from equity_tracker.config import AppConfig


def option_name(field_name: str) -> str:
    """db_path -> --db-path"""
    return "--" + field_name.replace("_", "-")


def _is_public(field: Field) -> bool:
    return not field.name.startswith("_") and get_origin(field.type) is not ClassVar


def add_config_options(
    parser: argparse.ArgumentParser | argparse._ArgumentGroup,
    config_class: type[Any] = AppConfig,
) -> None:
    """
    Add one `--kebab-case` option per public dataclass field.

    Values stay strings (default None, so unset options are recognisable)
    and are coerced later by ConfigLoader; bool fields become flags.
    """
    for field in filter(_is_public, fields(config_class)):
        help_text: str = f"Override the '{field.name}' setting"
        if field.type is bool:
            _ = parser.add_argument(
                option_name(field.name), action="store_true", default=None, help=help_text
            )
        else:
            _ = parser.add_argument(
                option_name(field.name),
                default=None,
                metavar=getattr(field.type, "__name__", "VALUE").upper(),
                help=help_text,
            )
