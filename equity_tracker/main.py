"""
Equity Tracker CLI

Record share purchases, follow each holding's weighted cost, gains and XIRR,
screen holdings against their entry valuations and watch threshold alerts.
"""

import argparse
import importlib
import logging
import pkgutil
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import equity_tracker.commands
from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.config import AppConfig, ConfigLoader, get_env
from equity_tracker.container import ServiceContainer
from equity_tracker.db import Database
from equity_tracker.utils.parser_utils import add_config_options
from equity_tracker.utils.setup_logging import setup_logging

logger = logging.getLogger(__name__)

ENVIRONMENTS: tuple[str, ...] = ("dev", "test", "prod")


def load_commands() -> None:
    """Import every module in the commands package so each command registers itself."""
    for _, name, _ in pkgutil.iter_modules(equity_tracker.commands.__path__):
        if name != "base":
            importlib.import_module(f"equity_tracker.commands.{name}")

    logger.debug(f"Loaded {len(CommandRegistry.get_commands())} commands")


def create_parser(env: str) -> argparse.ArgumentParser:
    """Create the argument parser with all commands and options."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="equity-tracker",
        description="Equity Tracker CLI",
        epilog="Use 'equity-tracker COMMAND --help' for more information on a command.",
    )

    global_group = parser.add_argument_group("Global Options")

    # Switching environments is only offered outside production
    if env != "prod":
        _ = global_group.add_argument(
            "--env", choices=ENVIRONMENTS, help="Environment to use. Default: prod"
        )

    add_config_options(global_group)
    _ = global_group.add_argument(
        "--config-file", type=Path, help="Path to specific configuration file to use"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    for command_class in CommandRegistry.get_commands().values():
        command_class.setup_parser(subparsers)

    return parser


def run_command(config: AppConfig, args: argparse.Namespace) -> int:
    """Open the store, wire the services and run the selected command."""
    command_classes: dict[str, type[Command]] = CommandRegistry.get_commands()
    if args.command not in command_classes:
        logger.error(f"Unknown command: {args.command}")
        print(f"Error: Unknown command: {args.command}", file=sys.stderr)
        return 1

    with Database(config.db_path) as db:
        db.create_tables_if_not_exists()
        container = ServiceContainer(config, db)
        command: Command = command_classes[args.command](config, db, container)
        return command.execute(args)


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the equity-tracker CLI application.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    load_commands()

    env: str = get_env()
    parser: argparse.ArgumentParser = create_parser(env)
    args: argparse.Namespace = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if getattr(args, "env", None):
        env = args.env

    overrides: dict[str, Any] = ConfigLoader.args_to_overrides(args)

    try:
        config: AppConfig = ConfigLoader.load_app_config(
            env=env, overrides=overrides, config_file=args.config_file
        )
    except (TypeError, ValueError, OSError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_config_path, config.log_level)
    logger.debug(f"Running '{args.command}' with environment '{env}'")

    try:
        return run_command(config, args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
