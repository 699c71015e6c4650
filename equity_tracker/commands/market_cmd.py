"""Manual overrides of current prices and live valuation metrics."""

import argparse
import logging
from typing import override

from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.repositories.market_repository import METRIC_NAMES
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class PriceCommand(Command):
    """Command to set a ticker's current price by hand."""

    name: str = "price"
    help: str = "Set the current price of a ticker"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("ticker", help="Ticker symbol")
        _ = parser.add_argument("value", type=float, help="Current price")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        try:
            portfolio_service.set_current_price(args.ticker, args.value)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        print(f"{args.ticker.upper()} current price set to {args.value:g}")
        _ = self.check_alerts()
        return 0


@CommandRegistry.register
class MetricCommand(Command):
    """Command to set a ticker's live P/E, P/B or EPS by hand."""

    name: str = "metric"
    help: str = "Set a live valuation metric (pe, pb, eps) of a ticker"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("ticker", help="Ticker symbol")
        _ = parser.add_argument("metric", choices=METRIC_NAMES, help="Metric name")
        _ = parser.add_argument("value", type=float, help="Metric value")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        try:
            portfolio_service.set_metric(args.ticker, args.metric, args.value)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        print(f"{args.ticker.upper()} live {args.metric} set to {args.value:g}")
        return 0
