"""Screen command implementation."""

import argparse
import logging
from datetime import datetime
from typing import override

from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.display import display_screen
from equity_tracker.models import ValuationSignal
from equity_tracker.repositories.market_repository import MarketRepository
from equity_tracker.services.portfolio_service import PortfolioService
from equity_tracker.services.screen_service import METRICS, SIDES, ScreenService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class ScreenCommand(Command):
    """Command to screen holdings against their historical entry multiples."""

    name: str = "screen"
    help: str = "Find holdings trading below or above your average P/E and P/B"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "--side",
            type=str.upper,
            choices=SIDES,
            default="BUY",
            help="BUY lists discounts, SELL lists premiums (default BUY)",
        )
        _ = parser.add_argument(
            "--metric",
            type=str.upper,
            choices=METRICS,
            default="ALL",
            help="Ratio to screen on (default ALL)",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        screen_service: ScreenService = self.container.get_service(ScreenService)
        market_repo: MarketRepository = self.container.get_repository(MarketRepository)

        signals: list[ValuationSignal] = screen_service.screen(
            portfolio_service.get_holdings(datetime.now()),
            market_repo.get_metrics(),
            side=args.side,
            metric=args.metric,
        )
        display_screen(signals, args.side, args.metric)
        return 0
