"""Refresh command implementation."""

import argparse
import logging
from typing import override

from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.market_data import fetch_market_data
from equity_tracker.models import MarketData
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class RefreshCommand(Command):
    """Command to refresh prices and valuation ratios from the market."""

    name: str = "refresh"
    help: str = "Sync market prices and fundamentals"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "--ticker",
            action="append",
            help="Only refresh this ticker (repeatable). Defaults to every held ticker",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        tickers: list[str] = getattr(args, "ticker", None) or portfolio_service.tickers()

        if not tickers:
            print("No holdings to refresh.")
            return 0

        print(f"Syncing market data for {len(tickers)} tickers...")
        data: dict[str, MarketData] = fetch_market_data(
            tickers, max_retries=self.config.market_data_max_retries
        )

        if not data:
            logger.warning("Market sync returned no data")
            print("No updated market data found")
            return 1

        count: int = portfolio_service.apply_market_data(data)
        missing: list[str] = [t for t in tickers if t.strip().upper() not in data]
        print(f"Updated market data for {count} assets")
        if missing:
            print(f"No data for: {', '.join(missing)}")

        _ = self.check_alerts()
        return 0
