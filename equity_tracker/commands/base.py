"""Base command class and the registry subcommands add themselves to."""

import argparse
import logging
from abc import ABC, abstractmethod
from datetime import datetime

from equity_tracker.config import AppConfig
from equity_tracker.container import ServiceContainer
from equity_tracker.db import Database
from equity_tracker.models import Alert
from equity_tracker.services.alert_service import AlertService
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


class Command(ABC):
    """
    One CLI subcommand.

    Subclasses set `name` and `help`, declare their arguments in
    `setup_parser` and return an exit code from `execute`.
    """

    name: str
    help: str

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        self.config: AppConfig = config
        self.db: Database = db
        self.container: ServiceContainer = container

    @classmethod
    @abstractmethod
    def setup_parser(cls, subparser) -> None:
        """Add this command's parser to the `add_subparsers()` action."""

    @abstractmethod
    def execute(self, args: argparse.Namespace) -> int:
        """Run the command; 0 on success, non-zero on a handled failure."""

    def check_alerts(self, now: datetime | None = None) -> list[Alert]:
        """Re-evaluate alerts after the lots or prices changed, announcing any that fire."""
        now = now or datetime.now()
        holdings = self.container.get_service(PortfolioService).get_holdings(now)
        triggered: list[Alert] = self.container.get_service(AlertService).check_alerts(
            holdings, now
        )
        for alert in triggered:
            print(f"Alert: {alert.describe()}")
        return triggered


class CommandRegistry:
    """Name -> Command class, filled by the `register` decorator at import time."""

    _commands: dict[str, type[Command]] = {}

    @classmethod
    def register(cls, command_class: type[Command]) -> type[Command]:
        if command_class.name in cls._commands and cls._commands[command_class.name] is not command_class:
            logger.warning(f"Command '{command_class.name}' registered twice; keeping the latest")
        cls._commands[command_class.name] = command_class
        return command_class

    @classmethod
    def get_commands(cls) -> dict[str, type[Command]]:
        return dict(cls._commands)
