"""
Whole-state backups: a JSON payload written to disk, or uploaded to Google Drive.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

import requests

from equity_tracker.db import Database
from equity_tracker.models import Alert, PurchaseLot
from equity_tracker.repositories.alert_repository import AlertRepository
from equity_tracker.repositories.lot_repository import LotRepository
from equity_tracker.repositories.market_repository import MarketRepository
from equity_tracker.utils.model_utils import ModelFactory

logger: logging.Logger = logging.getLogger(__name__)

DRIVE_FILES_URL: str = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL: str = "https://www.googleapis.com/upload/drive/v3/files"
MULTIPART_BOUNDARY: str = "-------314159265358979323846"


class BackupError(Exception):
    """Raised when a backup cannot be written or uploaded."""


def build_backup_payload(
    lots: list[PurchaseLot],
    prices: dict[str, float],
    metrics: dict[str, dict[str, float]],
    alerts: list[Alert],
    now: datetime,
) -> dict[str, Any]:
    return {
        "purchases": [ModelFactory.to_record(lot) for lot in lots],
        "currentPrices": prices,
        "currentMetrics": metrics,
        "alerts": [ModelFactory.to_record(alert) for alert in alerts],
        "timestamp": now.isoformat(),
    }


def snapshot_store(db: Database, now: datetime) -> dict[str, Any]:
    market_repo = MarketRepository(db)
    return build_backup_payload(
        lots=LotRepository(db).get_all(),
        prices=market_repo.get_prices(),
        metrics=market_repo.get_metrics(),
        alerts=AlertRepository(db).get_all(),
        now=now,
    )


def export_backup(path: Path, payload: dict[str, Any]) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    except OSError as e:
        raise BackupError(f"Could not write backup to {path}: {e}") from e
    logger.info(f"Backup written to {path}")
    return path


# Field names used by backups written from the browser version of the tracker
CAMEL_CASE_FIELDS: dict[str, str] = {
    "name": "ticker",
    "purchaseDate": "purchase_date",
    "type": "alert_type",
    "isActive": "is_active",
    "triggeredAt": "triggered_at",
}


def _snake_case_record(record: dict[str, Any]) -> dict[str, Any]:
    return {CAMEL_CASE_FIELDS.get(key, key): value for key, value in record.items()}


def restore_backup(db: Database, path: Path) -> dict[str, int]:
    """Replace the stored lots, prices, metrics and alerts with a backup file's contents."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload: dict[str, Any] = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise BackupError(f"Could not read backup {path}: {e}") from e

    lots: list[PurchaseLot] = ModelFactory.create_list_from_records(
        PurchaseLot, [_snake_case_record(r) for r in payload.get("purchases") or []]
    )
    alerts: list[Alert] = ModelFactory.create_list_from_records(
        Alert, [_snake_case_record(r) for r in payload.get("alerts") or []]
    )

    LotRepository(db).save_all(lots)
    AlertRepository(db).save_all(alerts)
    db.save(MarketRepository.PRICES_KEY, payload.get("currentPrices") or {})
    db.save(MarketRepository.METRICS_KEY, payload.get("currentMetrics") or {})

    logger.info(f"Restored {len(lots)} lots and {len(alerts)} alerts from {path}")
    return {"purchases": len(lots), "alerts": len(alerts)}


class DriveBackupSink:
    """Uploads the backup payload to a single named file in Google Drive."""

    def __init__(
        self,
        access_token: str | None = None,
        filename: str = "equity_insight_backup.json",
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ):
        self.access_token = access_token or os.getenv("GOOGLE_DRIVE_TOKEN")
        self.filename = filename
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        if not self.access_token:
            raise BackupError("No Google Drive access token (set GOOGLE_DRIVE_TOKEN)")
        return {"Authorization": f"Bearer {self.access_token}"}

    def find_existing(self) -> str | None:
        """Id of the existing backup file, if there is one."""
        response = self.session.get(
            DRIVE_FILES_URL,
            params={"q": f"name='{self.filename}' and trashed=false"},
            headers=self._headers(),
            timeout=self.timeout,
        )
        if not response.ok:
            raise BackupError(f"Drive search failed with HTTP {response.status_code}")
        files: list[dict[str, Any]] = response.json().get("files") or []
        return files[0]["id"] if files else None

    def _multipart_body(self, payload: dict[str, Any]) -> str:
        metadata: dict[str, str] = {"name": self.filename, "mimeType": "application/json"}
        delimiter: str = f"\r\n--{MULTIPART_BOUNDARY}\r\n"
        close_delim: str = f"\r\n--{MULTIPART_BOUNDARY}--"
        return (
            delimiter
            + "Content-Type: application/json; charset=UTF-8\r\n\r\n"
            + json.dumps(metadata)
            + delimiter
            + "Content-Type: application/json\r\n\r\n"
            + json.dumps(payload, indent=2)
            + close_delim
        )

    def upload(self, payload: dict[str, Any]) -> str:
        """
        Create or overwrite the backup file.

        Returns:
            The Drive file id

        Raises:
            BackupError: on missing credentials, network errors or a non-2xx response
        """
        try:
            existing_id: str | None = self.find_existing()
            if existing_id:
                url, method = f"{DRIVE_UPLOAD_URL}/{existing_id}?uploadType=multipart", "PATCH"
            else:
                url, method = f"{DRIVE_UPLOAD_URL}?uploadType=multipart", "POST"

            headers: dict[str, str] = {
                **self._headers(),
                "Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}",
            }
            response = self.session.request(
                method,
                url,
                data=self._multipart_body(payload).encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BackupError(f"Drive upload failed: {e}") from e

        if not response.ok:
            raise BackupError(f"Drive upload failed with HTTP {response.status_code}")

        file_id: str = response.json().get("id", existing_id or "")
        logger.info(f"Backup uploaded to Google Drive ({method} {self.filename})")
        return file_id
