"""Backup command implementation."""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, override

from equity_tracker.backup import (
    BackupError,
    DriveBackupSink,
    export_backup,
    restore_backup,
    snapshot_store,
)
from equity_tracker.commands.base import Command, CommandRegistry
from equity_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class BackupCommand(Command):
    """Command to export, restore or upload a backup of all tracker data."""

    name: str = "backup"
    help: str = "Export, restore or upload a JSON backup"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        actions = parser.add_subparsers(dest="action", required=True)

        export_parser: argparse.ArgumentParser = actions.add_parser(
            "export", help="Write a backup file"
        )
        _ = export_parser.add_argument(
            "file", nargs="?", help="Destination (defaults to config.backup_path)"
        )

        restore_parser: argparse.ArgumentParser = actions.add_parser(
            "restore", help="Replace all data with a backup file"
        )
        _ = restore_parser.add_argument(
            "file", nargs="?", help="Backup to read (defaults to config.backup_path)"
        )

        _ = actions.add_parser("drive", help="Upload a backup to Google Drive")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        path: Path = Path(args.file) if getattr(args, "file", None) else self.config.backup_path

        try:
            if args.action == "export":
                payload: dict[str, Any] = snapshot_store(self.db, datetime.now())
                _ = export_backup(path, payload)
                print(f"Backup written to {path}")

            elif args.action == "restore":
                counts: dict[str, int] = restore_backup(self.db, path)
                self.container.get_service(PortfolioService).invalidate()
                print(f"Restored {counts['purchases']} lots and {counts['alerts']} alerts from {path}")
                _ = self.check_alerts()

            elif args.action == "drive":
                sink = DriveBackupSink(filename=self.config.drive_backup_filename)
                file_id: str = sink.upload(snapshot_store(self.db, datetime.now()))
                print(f"Backup saved to Google Drive ({file_id})")

            return 0
        except (BackupError, ValueError) as e:
            logger.error(f"Backup {args.action} failed: {e}")
            print(f"Error: {e}")
            return 1
