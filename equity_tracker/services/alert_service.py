import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from equity_tracker.aggregator import normalize_ticker
from equity_tracker.models import Alert, AlertType, HoldingAggregate
from equity_tracker.repositories.alert_repository import AlertRepository

logger: logging.Logger = logging.getLogger(__name__)


def observed_value(alert_type: AlertType, holding: HoldingAggregate) -> float:
    """The holding figure an alert of this type watches."""
    match alert_type.subject:
        case "PRICE":
            return holding.current_price
        case "PE":
            return holding.avg_pe
        case "PB":
            return holding.avg_pb
        case "EPS":
            return holding.avg_eps
    raise ValueError(f"Unsupported alert type: {alert_type}")


def is_breached(alert: Alert, holding: HoldingAggregate) -> bool:
    value: float = observed_value(alert.alert_type, holding)
    if alert.alert_type.is_above:
        return value >= alert.threshold
    return value <= alert.threshold


class AlertService:
    """Service for creating, listing and evaluating threshold alerts."""

    def __init__(self, alert_repo: AlertRepository):
        self.alert_repo = alert_repo

    def add_alert(self, ticker: str, alert_type: AlertType | str, threshold: float) -> Alert:
        alert = Alert(
            id=uuid.uuid4().hex,
            ticker=normalize_ticker(ticker),
            alert_type=AlertType(str(alert_type).upper()),
            threshold=float(threshold),
        )
        if not alert.ticker:
            raise ValueError("Ticker must not be empty")
        _ = self.alert_repo.insert(alert)
        logger.info(f"Alert set: {alert.describe()}")
        return alert

    def delete_alert(self, alert_id: str) -> None:
        self.alert_repo.delete(alert_id)
        logger.info(f"Deleted alert {alert_id}")

    def list_alerts(self, ticker: str | None = None, active_only: bool = False) -> list[Alert]:
        alerts: list[Alert] = self.alert_repo.get_all()
        if ticker:
            wanted: str = normalize_ticker(ticker)
            alerts = [a for a in alerts if a.ticker == wanted]
        if active_only:
            alerts = [a for a in alerts if a.is_active]
        return alerts

    def check_alerts(self, holdings: Sequence[HoldingAggregate], now: datetime) -> list[Alert]:
        """
        Evaluate active alerts against freshly computed holdings.

        Each breached alert is deactivated and stamped with `now`; it will not
        fire again. Alerts for tickers not currently held are left untouched.

        Returns:
            The alerts that fired during this check
        """
        by_ticker: dict[str, HoldingAggregate] = {h.ticker: h for h in holdings}
        alerts: list[Alert] = self.alert_repo.get_all()
        triggered: list[Alert] = []

        for alert in alerts:
            if not alert.is_active:
                continue
            holding: HoldingAggregate | None = by_ticker.get(alert.ticker)
            if holding is None:
                continue
            if is_breached(alert, holding):
                alert.is_active = False
                alert.triggered_at = now
                triggered.append(alert)
                logger.info(f"Alert triggered: {alert.describe()}")

        if triggered:
            self.alert_repo.save_all(alerts)
        return triggered
