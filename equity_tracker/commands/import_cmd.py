"""Import command implementation."""

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import override

from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.importer import ImportFileError, ImportResult, import_holdings
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class ImportCommand(Command):
    """Command to import holdings from a broker CSV/Excel export."""

    name: str = "import"
    help: str = "Import holdings from a CSV or Excel file"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "file",
            nargs="?",
            help="File to import (defaults to config.import_path if not specified)",
        )
        _ = parser.add_argument(
            "--date",
            dest="import_date",
            type=date.fromisoformat,
            help="Purchase date for rows without one (YYYY-MM-DD, default today)",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        path: Path = Path(args.file) if args.file else self.config.import_path
        import_date: date = getattr(args, "import_date", None) or date.today()

        if not path.exists():
            logger.error(f"Import file not found: {path}")
            print(f"Error: Import file not found: {path}")
            return 1

        logger.info(f"Importing holdings from {path}")
        print(f"Importing holdings from {path}...")

        try:
            result: ImportResult = import_holdings(path, import_date)
            portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
            count: int = portfolio_service.add_lots(result.lots)
        except ImportFileError as e:
            logger.error(f"Import failed: {e}")
            print(f"Error: {e}")
            return 1
        except Exception as e:
            logger.error(f"Import failed: {e}", exc_info=True)
            print(f"Error: Import failed: {e}")
            return 1

        print(f"Imported {count} holdings from {path.name} ({result.skipped_rows} rows skipped)")
        _ = self.check_alerts()
        return 0
