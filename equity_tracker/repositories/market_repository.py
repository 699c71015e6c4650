import logging
from typing import Any

from equity_tracker.db import Database
from equity_tracker.models import MarketData

logger: logging.Logger = logging.getLogger(__name__)

METRIC_NAMES: tuple[str, ...] = ("pe", "pb", "eps")


class MarketRepository:
    """Current prices and live valuation metrics, keyed by ticker."""

    PRICES_KEY: str = "prices"
    METRICS_KEY: str = "metrics"

    def __init__(self, db: Database) -> None:
        self.db: Database = db

    def get_prices(self) -> dict[str, float]:
        return {ticker: float(price) for ticker, price in (self.db.load(self.PRICES_KEY) or {}).items()}

    def get_price(self, ticker: str) -> float | None:
        return self.get_prices().get(ticker)

    def set_price(self, ticker: str, price: float) -> None:
        self.merge_prices({ticker: price})

    def merge_prices(self, prices: dict[str, float]) -> None:
        merged: dict[str, float] = self.get_prices()
        merged.update(prices)
        self.db.save(self.PRICES_KEY, merged)

    def get_metrics(self) -> dict[str, dict[str, float]]:
        stored: dict[str, Any] = self.db.load(self.METRICS_KEY) or {}
        return {
            ticker: {name: float(v) for name, v in values.items() if v is not None}
            for ticker, values in stored.items()
        }

    def set_metric(self, ticker: str, name: str, value: float) -> None:
        if name not in METRIC_NAMES:
            raise ValueError(f"Unknown metric '{name}', expected one of {METRIC_NAMES}")
        self.merge_metrics({ticker: {name: value}})

    def merge_metrics(self, metrics: dict[str, dict[str, float]]) -> None:
        merged: dict[str, dict[str, float]] = self.get_metrics()
        for ticker, values in metrics.items():
            merged.setdefault(ticker, {}).update(values)
        self.db.save(self.METRICS_KEY, merged)

    def apply_market_data(self, data: dict[str, MarketData]) -> None:
        """Merge a provider snapshot into the stored prices and metrics."""
        if not data:
            return
        self.merge_prices({ticker: md.price for ticker, md in data.items()})
        self.merge_metrics(
            {
                ticker: {
                    name: getattr(md, name)
                    for name in METRIC_NAMES
                    if getattr(md, name) is not None
                }
                for ticker, md in data.items()
            }
        )
