from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum


@dataclass(frozen=True)
class PurchaseLot:
    id: str
    ticker: str
    purchase_date: date
    price: float
    quantity: float
    pe: float = 0.0
    pb: float = 0.0
    eps: float = 0.0
    note: str | None = None

    @property
    def cost(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class CashFlow:
    amount: float
    when: datetime


@dataclass
class HoldingAggregate:
    """
    Per-ticker view derived from a set of purchase lots and a current price.
    Never stored; always recomputed from lots + price map.
    """

    ticker: str
    lot_count: int
    total_quantity: float
    total_invested: float
    weighted_avg_price: float
    avg_pe: float
    avg_pb: float
    avg_eps: float
    current_price: float
    xirr: float  # annualised money-weighted return, percent
    has_valid_basis: bool = True
    lots: tuple[PurchaseLot, ...] = field(default_factory=tuple)

    @property
    def current_value(self) -> float:
        return self.current_price * self.total_quantity

    @property
    def gain(self) -> float:
        return self.current_value - self.total_invested

    @property
    def gain_percentage(self) -> float:
        return (self.gain / self.total_invested * 100) if self.total_invested > 0 else 0.0


@dataclass
class PortfolioSummary:
    """
    Represents the aggregated position of the entire portfolio.
    """

    holdings: list[HoldingAggregate]
    total_invested: float
    current_value: float
    total_gain: float
    total_gain_percentage: float
    xirr: float


class AlertType(StrEnum):
    PRICE_ABOVE = "PRICE_ABOVE"
    PRICE_BELOW = "PRICE_BELOW"
    PE_ABOVE = "PE_ABOVE"
    PE_BELOW = "PE_BELOW"
    PB_ABOVE = "PB_ABOVE"
    PB_BELOW = "PB_BELOW"
    EPS_ABOVE = "EPS_ABOVE"
    EPS_BELOW = "EPS_BELOW"

    @property
    def is_above(self) -> bool:
        return self.value.endswith("_ABOVE")

    @property
    def subject(self) -> str:
        """The watched quantity: 'PRICE', 'PE', 'PB' or 'EPS'."""
        return self.value.rsplit("_", 1)[0]


@dataclass
class Alert:
    id: str
    ticker: str
    alert_type: AlertType
    threshold: float
    is_active: bool = True
    triggered_at: datetime | None = None

    def describe(self) -> str:
        words: str = self.alert_type.value.replace("_", " ", 1).lower()
        return f"{self.ticker} {words} {self.threshold:g}"


@dataclass
class MarketData:
    price: float
    pe: float | None = None
    pb: float | None = None
    eps: float | None = None


@dataclass
class PortfolioAnalysis:
    summary: str
    advice: str


@dataclass
class ValuationSignal:
    """Gap between a holding's historical entry multiples and the live ones."""

    ticker: str
    avg_pe: float
    avg_pb: float
    live_pe: float | None
    live_pb: float | None
    pe_discount: float  # positive = trading below entry P/E
    pb_discount: float

    @property
    def pe_premium(self) -> float:
        return -self.pe_discount

    @property
    def pb_premium(self) -> float:
        return -self.pb_discount

    @property
    def max_discount(self) -> float:
        return max(self.pe_discount, self.pb_discount)

    @property
    def max_premium(self) -> float:
        return max(self.pe_premium, self.pb_premium)
