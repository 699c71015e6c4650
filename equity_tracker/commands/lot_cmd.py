"""Lot command implementation: record, edit, remove and list purchase lots."""

import argparse
import logging
from datetime import date
from typing import Any, override

from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.display import display_lots
from equity_tracker.models import PurchaseLot
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)

LOT_FIELDS: tuple[str, ...] = ("ticker", "purchase_date", "price", "quantity", "pe", "pb", "eps", "note")


def _add_lot_arguments(parser: argparse.ArgumentParser, required: bool) -> None:
    _ = parser.add_argument("--ticker", required=required, help="Ticker symbol")
    _ = parser.add_argument(
        "--date",
        dest="purchase_date",
        type=date.fromisoformat,
        help="Purchase date (YYYY-MM-DD, default today)",
    )
    _ = parser.add_argument("--price", type=float, required=required, help="Unit purchase price")
    _ = parser.add_argument("--quantity", type=float, required=required, help="Number of shares")
    _ = parser.add_argument("--pe", type=float, help="P/E ratio at purchase")
    _ = parser.add_argument("--pb", type=float, help="P/B ratio at purchase")
    _ = parser.add_argument("--eps", type=float, help="EPS at purchase")
    _ = parser.add_argument("--note", help="Free-text note")


@CommandRegistry.register
class LotCommand(Command):
    """Command to manage purchase lots."""

    name: str = "lot"
    help: str = "Add, edit, remove or list purchase lots"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        actions = parser.add_subparsers(dest="action", required=True)

        add_parser: argparse.ArgumentParser = actions.add_parser("add", help="Record a purchase")
        _add_lot_arguments(add_parser, required=True)

        edit_parser: argparse.ArgumentParser = actions.add_parser("edit", help="Edit a purchase")
        _ = edit_parser.add_argument("id", help="Lot id")
        _add_lot_arguments(edit_parser, required=False)

        remove_parser: argparse.ArgumentParser = actions.add_parser(
            "remove", help="Delete a purchase"
        )
        _ = remove_parser.add_argument("id", help="Lot id")

        list_parser: argparse.ArgumentParser = actions.add_parser("list", help="List purchases")
        _ = list_parser.add_argument("--ticker", help="Only this ticker")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)

        try:
            if args.action == "add":
                lot: PurchaseLot = portfolio_service.add_lot(
                    ticker=args.ticker,
                    purchase_date=args.purchase_date or date.today(),
                    price=args.price,
                    quantity=args.quantity,
                    pe=args.pe or 0.0,
                    pb=args.pb or 0.0,
                    eps=args.eps or 0.0,
                    note=args.note,
                )
                print(f"Recorded lot {lot.id} for {lot.ticker}")
                _ = self.check_alerts()

            elif args.action == "edit":
                changes: dict[str, Any] = {
                    name: getattr(args, name)
                    for name in LOT_FIELDS
                    if getattr(args, name, None) is not None
                }
                if not changes:
                    print("Nothing to change.")
                    return 0
                lot = portfolio_service.update_lot(args.id, **changes)
                print(f"Updated record for {lot.ticker}")
                _ = self.check_alerts()

            elif args.action == "remove":
                portfolio_service.remove_lot(args.id)
                print(f"Deleted lot {args.id}")
                _ = self.check_alerts()

            elif args.action == "list":
                display_lots(portfolio_service.list_lots(args.ticker))

            return 0
        except (KeyError, ValueError) as e:
            logger.error(f"Lot {args.action} failed: {e}", exc_info=True)
            print(f"Error: {e}")
            return 1
