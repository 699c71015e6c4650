"""Report command implementation."""

import argparse
import logging
from datetime import datetime
from typing import override

from equity_tracker.analysis import generate_portfolio_analysis
from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.display import display_analysis, display_holdings, display_portfolio
from equity_tracker.models import HoldingAggregate, PortfolioAnalysis, PortfolioSummary
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class ReportCommand(Command):
    """Command to generate reports."""

    name: str = "report"
    help: str = "Generate reports"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "type",
            choices=["holdings", "portfolio", "analysis"],
            help="Type of report to generate",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        report_type: str = str(args.type)
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        now: datetime = datetime.now()

        try:
            if report_type == "holdings":
                holdings: list[HoldingAggregate] = portfolio_service.get_holdings(now)
                display_holdings(holdings)

            elif report_type == "portfolio":
                summary: PortfolioSummary = portfolio_service.get_portfolio_summary(now)
                display_portfolio(summary)

            elif report_type == "analysis":
                print("Generating portfolio review...")
                analysis: PortfolioAnalysis = generate_portfolio_analysis(
                    portfolio_service.get_holdings(now), model=self.config.openai_model
                )
                display_analysis(analysis)

            return 0
        except Exception as e:
            logger.error(f"Error generating report: {e}", exc_info=True)
            print(f"Error: Failed to generate {report_type} report: {e}")
            return 1
