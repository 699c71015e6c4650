import dataclasses
import logging
import uuid
from datetime import date, datetime
from typing import Any

from equity_tracker.aggregator import aggregate_holdings, normalize_ticker, summarize_portfolio
from equity_tracker.models import HoldingAggregate, MarketData, PortfolioSummary, PurchaseLot
from equity_tracker.repositories.lot_repository import LotRepository
from equity_tracker.repositories.market_repository import MarketRepository

logger: logging.Logger = logging.getLogger(__name__)

EDITABLE_FIELDS: frozenset[str] = frozenset(
    field.name for field in dataclasses.fields(PurchaseLot) if field.name != "id"
)


def new_id() -> str:
    return uuid.uuid4().hex


def validate_lot(lot: PurchaseLot) -> None:
    if not lot.ticker:
        raise ValueError("Ticker must not be empty")
    if lot.quantity <= 0:
        raise ValueError(f"Quantity must be positive, got {lot.quantity}")
    if lot.price < 0:
        raise ValueError(f"Price cannot be negative, got {lot.price}")


class PortfolioService:
    """
    Lot bookkeeping plus the derived holdings and portfolio summary.

    Derived values are cached against an input version that every mutation
    made through this service bumps; the cache is also keyed on `now`.
    """

    def __init__(
        self,
        lot_repo: LotRepository,
        market_repo: MarketRepository,
        ratio_weighting: str = "lot",
    ):
        self.lot_repo = lot_repo
        self.market_repo = market_repo
        self.ratio_weighting = ratio_weighting
        self._version: int = 0
        self._cache_key: tuple[int, datetime] | None = None
        self._cached: tuple[list[HoldingAggregate], PortfolioSummary] | None = None

    @property
    def version(self) -> int:
        return self._version

    def invalidate(self) -> None:
        """Mark derived values stale, e.g. after the store was changed from outside."""
        self._version += 1

    # --- Lots ---

    def add_lot(
        self,
        ticker: str,
        purchase_date: date,
        price: float,
        quantity: float,
        pe: float = 0.0,
        pb: float = 0.0,
        eps: float = 0.0,
        note: str | None = None,
    ) -> PurchaseLot:
        lot = PurchaseLot(
            id=new_id(),
            ticker=normalize_ticker(ticker),
            purchase_date=purchase_date,
            price=price,
            quantity=quantity,
            pe=pe,
            pb=pb,
            eps=eps,
            note=note,
        )
        validate_lot(lot)
        _ = self.lot_repo.insert(lot)

        # First sighting of a ticker: use the purchase price until a live one arrives
        if not self.market_repo.get_price(lot.ticker):
            self.market_repo.set_price(lot.ticker, lot.price)

        self.invalidate()
        logger.info(f"Added lot {lot.id}: {lot.quantity:g} x {lot.ticker} @ {lot.price:g}")
        return lot

    def add_lots(self, lots: list[PurchaseLot]) -> int:
        """Bulk insert already-built lots (import path)."""
        normalised: list[PurchaseLot] = []
        for lot in lots:
            lot = dataclasses.replace(lot, ticker=normalize_ticker(lot.ticker))
            validate_lot(lot)
            normalised.append(lot)
        count: int = self.lot_repo.insert_many(normalised)
        self.invalidate()
        return count

    def update_lot(self, lot_id: str, **changes: Any) -> PurchaseLot:
        """Replace fields of an existing lot; its id never changes."""
        unknown: set[str] = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit lot fields: {sorted(unknown)}")

        existing: PurchaseLot | None = self.lot_repo.get_by_id(lot_id)
        if existing is None:
            raise KeyError(f"Purchase lot {lot_id} not found")

        if "ticker" in changes:
            changes["ticker"] = normalize_ticker(changes["ticker"])
        updated: PurchaseLot = dataclasses.replace(existing, **changes)
        validate_lot(updated)
        self.lot_repo.update(updated)
        self.invalidate()
        logger.info(f"Updated lot {lot_id}")
        return updated

    def remove_lot(self, lot_id: str) -> None:
        self.lot_repo.delete(lot_id)
        self.invalidate()
        logger.info(f"Removed lot {lot_id}")

    def list_lots(self, ticker: str | None = None) -> list[PurchaseLot]:
        if ticker:
            return self.lot_repo.get_for_ticker(ticker)
        return self.lot_repo.get_all()

    # --- Market inputs ---

    def set_current_price(self, ticker: str, price: float) -> None:
        if price < 0:
            raise ValueError(f"Price cannot be negative, got {price}")
        self.market_repo.set_price(normalize_ticker(ticker), price)
        self.invalidate()

    def set_metric(self, ticker: str, name: str, value: float) -> None:
        self.market_repo.set_metric(normalize_ticker(ticker), name.lower(), value)
        self.invalidate()

    def apply_market_data(self, data: dict[str, MarketData]) -> int:
        self.market_repo.apply_market_data(
            {normalize_ticker(ticker): md for ticker, md in data.items()}
        )
        self.invalidate()
        return len(data)

    def tickers(self) -> list[str]:
        return list(dict.fromkeys(normalize_ticker(lot.ticker) for lot in self.lot_repo.get_all()))

    # --- Derived values ---

    def _recompute(self, now: datetime) -> tuple[list[HoldingAggregate], PortfolioSummary]:
        key: tuple[int, datetime] = (self._version, now)
        if self._cached is not None and self._cache_key == key:
            return self._cached

        lots: list[PurchaseLot] = self.lot_repo.get_all()
        holdings: list[HoldingAggregate] = aggregate_holdings(
            lots, self.market_repo.get_prices(), now, self.ratio_weighting
        )
        summary: PortfolioSummary = summarize_portfolio(lots, holdings, now)
        logger.debug(f"Recomputed {len(holdings)} holdings at version {self._version}")

        self._cache_key = key
        self._cached = (holdings, summary)
        return self._cached

    def get_holdings(self, now: datetime) -> list[HoldingAggregate]:
        return self._recompute(now)[0]

    def get_portfolio_summary(self, now: datetime) -> PortfolioSummary:
        return self._recompute(now)[1]
