"""Alert command implementation."""

import argparse
import logging
from typing import override

from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.display import display_alerts
from equity_tracker.models import Alert, AlertType
from equity_tracker.services.alert_service import AlertService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class AlertCommand(Command):
    """Command to manage price and valuation alerts."""

    name: str = "alert"
    help: str = "Add, list, delete or check threshold alerts"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        actions = parser.add_subparsers(dest="action", required=True)

        add_parser: argparse.ArgumentParser = actions.add_parser("add", help="Set an alert")
        _ = add_parser.add_argument("ticker", help="Ticker symbol")
        _ = add_parser.add_argument(
            "type",
            type=str.upper,
            choices=[t.value for t in AlertType],
            help="Alert type, e.g. PRICE_ABOVE or PE_BELOW",
        )
        _ = add_parser.add_argument("threshold", type=float, help="Threshold value")

        list_parser: argparse.ArgumentParser = actions.add_parser("list", help="List alerts")
        _ = list_parser.add_argument("--ticker", help="Only this ticker")
        _ = list_parser.add_argument(
            "--active", action="store_true", help="Only alerts that have not fired"
        )

        delete_parser: argparse.ArgumentParser = actions.add_parser(
            "delete", help="Delete an alert"
        )
        _ = delete_parser.add_argument("id", help="Alert id")

        _ = actions.add_parser("check", help="Evaluate active alerts now")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        alert_service: AlertService = self.container.get_service(AlertService)

        try:
            if args.action == "add":
                alert: Alert = alert_service.add_alert(args.ticker, args.type, args.threshold)
                print(f"Alert set: {alert.describe()} ({alert.id})")
                _ = self.check_alerts()

            elif args.action == "list":
                display_alerts(alert_service.list_alerts(args.ticker, active_only=args.active))

            elif args.action == "delete":
                alert_service.delete_alert(args.id)
                print(f"Deleted alert {args.id}")

            elif args.action == "check":
                if not self.check_alerts():
                    print("No alerts triggered.")

            return 0
        except (KeyError, ValueError) as e:
            logger.error(f"Alert {args.action} failed: {e}", exc_info=True)
            print(f"Error: {e}")
            return 1
