import logging
from typing import Any

from equity_tracker.db import Database
from equity_tracker.models import Alert
from equity_tracker.utils.model_utils import ModelFactory

logger: logging.Logger = logging.getLogger(__name__)


class AlertRepository:
    KEY: str = "alerts"

    def __init__(self, db: Database) -> None:
        self.db: Database = db

    def get_all(self) -> list[Alert]:
        records: list[dict[str, Any]] | None = self.db.load(self.KEY)
        return ModelFactory.create_list_from_records(Alert, records)

    def get_by_id(self, alert_id: str) -> Alert | None:
        return next((alert for alert in self.get_all() if alert.id == alert_id), None)

    def save_all(self, alerts: list[Alert]) -> None:
        self.db.save(self.KEY, [ModelFactory.to_record(alert) for alert in alerts])

    def insert(self, alert: Alert) -> str:
        self.save_all(self.get_all() + [alert])
        return alert.id

    def delete(self, alert_id: str) -> None:
        alerts: list[Alert] = self.get_all()
        remaining: list[Alert] = [alert for alert in alerts if alert.id != alert_id]
        if len(remaining) == len(alerts):
            raise KeyError(f"Alert {alert_id} not found")
        self.save_all(remaining)
