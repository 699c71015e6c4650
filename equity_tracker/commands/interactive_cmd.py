"""Interactive command implementation."""

import argparse
import logging
from typing import Callable, override

from equity_tracker.commands.base import Command, CommandRegistry

logger = logging.getLogger(__name__)


def _prompt(message: str, default: str | None = None) -> str:
    suffix: str = f" [{default}]" if default else ""
    value: str = input(f"{message}{suffix}: ").strip()
    return value or (default or "")


@CommandRegistry.register
class InteractiveCommand(Command):
    """Command to launch interactive menu mode."""

    name: str = "interactive"
    help: str = "Launch interactive menu mode"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        _ = subparser.add_parser(cls.name, help=cls.help)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        return self._run_interactive_mode()

    def _add_lot_namespace(self) -> argparse.Namespace:
        return argparse.Namespace(
            action="add",
            ticker=_prompt("Ticker"),
            purchase_date=None,
            price=float(_prompt("Purchase price")),
            quantity=float(_prompt("Quantity")),
            pe=float(_prompt("P/E at purchase", "0")),
            pb=float(_prompt("P/B at purchase", "0")),
            eps=float(_prompt("EPS at purchase", "0")),
            note=_prompt("Note") or None,
        )

    def _run_interactive_mode(self) -> int:
        """Run the application in interactive menu mode."""
        from equity_tracker.commands.alert_cmd import AlertCommand
        from equity_tracker.commands.backup_cmd import BackupCommand
        from equity_tracker.commands.import_cmd import ImportCommand
        from equity_tracker.commands.lot_cmd import LotCommand
        from equity_tracker.commands.refresh_cmd import RefreshCommand
        from equity_tracker.commands.report_cmd import ReportCommand
        from equity_tracker.commands.screen_cmd import ScreenCommand

        lot_cmd: Command = LotCommand(self.config, self.db, self.container)
        import_cmd: Command = ImportCommand(self.config, self.db, self.container)
        refresh_cmd: Command = RefreshCommand(self.config, self.db, self.container)
        report_cmd: Command = ReportCommand(self.config, self.db, self.container)
        screen_cmd: Command = ScreenCommand(self.config, self.db, self.container)
        alert_cmd: Command = AlertCommand(self.config, self.db, self.container)
        backup_cmd: Command = BackupCommand(self.config, self.db, self.container)

        handlers: dict[str, Callable[[], int]] = {
            "1": lambda: lot_cmd.execute(self._add_lot_namespace()),
            "2": lambda: import_cmd.execute(
                argparse.Namespace(file=_prompt("File", str(self.config.import_path)), import_date=None)
            ),
            "3": lambda: refresh_cmd.execute(argparse.Namespace(ticker=None)),
            "4": lambda: report_cmd.execute(argparse.Namespace(type="portfolio")),
            "5": lambda: screen_cmd.execute(
                argparse.Namespace(side=_prompt("Side (BUY/SELL)", "BUY").upper(), metric="ALL")
            ),
            "6": lambda: alert_cmd.execute(argparse.Namespace(action="list", ticker=None, active=False)),
            "7": lambda: report_cmd.execute(argparse.Namespace(type="analysis")),
            "8": lambda: backup_cmd.execute(argparse.Namespace(action="export", file=None)),
        }

        while True:
            print("\n=== Equity Tracker Menu ===")
            print("1. Record a Purchase")
            print("2. Import Holdings from CSV/Excel")
            print("3. Sync Market Data")
            print("4. View Portfolio")
            print("5. Valuation Screen")
            print("6. View Alerts")
            print("7. Portfolio Review")
            print("8. Export Backup")
            print("0. Exit")

            choice: str = input("\nEnter your choice (0-8): ")

            if choice == "0":
                print("Exiting Equity Tracker. Goodbye!")
                break

            handler = handlers.get(choice)
            if handler:
                try:
                    exit_code = handler()
                    if exit_code != 0:
                        print(f"\nCommand completed with exit code {exit_code}")
                except Exception as e:
                    print(f"\nError: {e}")
                    logger.error(f"Error in interactive mode: {e}", exc_info=True)
            else:
                print("Invalid choice. Please try again.")

        return 0
