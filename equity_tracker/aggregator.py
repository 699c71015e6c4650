"""
Turns purchase lots plus a current-price map into per-ticker holdings and the
cash-flow series fed to the XIRR solver.

All functions here are pure: the terminal valuation date `now` is always
passed in, never read from the clock.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, time

from equity_tracker.models import CashFlow, HoldingAggregate, PortfolioSummary, PurchaseLot
from equity_tracker.xirr import solve_rate

logger: logging.Logger = logging.getLogger(__name__)

RATIO_WEIGHTINGS: tuple[str, ...] = ("lot", "quantity")


def normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def group_lots(lots: Iterable[PurchaseLot]) -> dict[str, list[PurchaseLot]]:
    """Group lots by normalised ticker, keeping first-seen ticker order."""
    groups: dict[str, list[PurchaseLot]] = {}
    for lot in lots:
        groups.setdefault(normalize_ticker(lot.ticker), []).append(lot)
    return groups


def lot_outflows(lots: Iterable[PurchaseLot]) -> list[CashFlow]:
    return [CashFlow(amount=-lot.cost, when=_as_datetime(lot.purchase_date)) for lot in lots]


def build_flow_series(
    lots: Sequence[PurchaseLot], terminal_value: float, now: datetime, include_terminal: bool = True
) -> list[CashFlow]:
    """
    One outflow per lot plus a terminal inflow of the current market value at `now`,
    sorted by date.
    """
    flows: list[CashFlow] = lot_outflows(lots)
    if include_terminal:
        flows.append(CashFlow(amount=terminal_value, when=now))
    flows.sort(key=lambda flow: flow.when)
    return flows


def _mean(values: Sequence[float], weights: Sequence[float] | None = None) -> float:
    if not values:
        return 0.0
    if weights is None:
        return sum(values) / len(values)
    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0
    return sum(v * w for v, w in zip(values, weights)) / total_weight


def aggregate_ticker(
    ticker: str,
    lots: Sequence[PurchaseLot],
    current_price: float,
    now: datetime,
    ratio_weighting: str = "lot",
) -> HoldingAggregate:
    """Build the aggregate for one ticker's lots."""
    total_quantity: float = sum(lot.quantity for lot in lots)
    total_invested: float = sum(lot.cost for lot in lots)

    has_valid_basis: bool = total_quantity != 0
    if has_valid_basis:
        weighted_avg_price = total_invested / total_quantity
    else:
        logger.warning(f"{ticker}: total quantity is zero, no cost basis available")
        weighted_avg_price = 0.0

    # Entry multiples are a plain mean over lots unless quantity weighting is asked for
    weights: list[float] | None = (
        [lot.quantity for lot in lots] if ratio_weighting == "quantity" else None
    )
    avg_pe: float = _mean([lot.pe for lot in lots], weights)
    avg_pb: float = _mean([lot.pb for lot in lots], weights)
    avg_eps: float = _mean([lot.eps for lot in lots], weights)

    # Terminal flow is kept even when worth zero
    flows: list[CashFlow] = build_flow_series(lots, current_price * total_quantity, now)
    rate: float = solve_rate(flows)

    return HoldingAggregate(
        ticker=ticker,
        lot_count=len(lots),
        total_quantity=total_quantity,
        total_invested=total_invested,
        weighted_avg_price=weighted_avg_price,
        avg_pe=avg_pe,
        avg_pb=avg_pb,
        avg_eps=avg_eps,
        current_price=current_price,
        xirr=rate,
        has_valid_basis=has_valid_basis,
        lots=tuple(lots),
    )


def aggregate_holdings(
    lots: Iterable[PurchaseLot],
    current_prices: Mapping[str, float],
    now: datetime,
    ratio_weighting: str = "lot",
) -> list[HoldingAggregate]:
    """
    Aggregate purchase lots into one holding per normalised ticker.

    Args:
        lots: Purchase lots in any order (may be empty)
        current_prices: Ticker -> current price; missing tickers count as 0
        now: Valuation time of the terminal cash flow
        ratio_weighting: 'lot' for an unweighted mean of entry ratios across
            lots, 'quantity' for a quantity-weighted mean

    Returns:
        Holdings sorted by total invested capital, largest first. Ties keep
        the order in which tickers first appear in `lots`.
    """
    if ratio_weighting not in RATIO_WEIGHTINGS:
        raise ValueError(
            f"Unknown ratio weighting '{ratio_weighting}', expected one of {RATIO_WEIGHTINGS}"
        )

    prices: dict[str, float] = {
        normalize_ticker(ticker): float(price or 0.0) for ticker, price in current_prices.items()
    }
    holdings: list[HoldingAggregate] = [
        aggregate_ticker(ticker, group, prices.get(ticker, 0.0), now, ratio_weighting)
        for ticker, group in group_lots(lots).items()
    ]
    # sorted() is stable, so equal totals keep first-seen order
    return sorted(holdings, key=lambda h: h.total_invested, reverse=True)


def summarize_portfolio(
    lots: Sequence[PurchaseLot], holdings: Sequence[HoldingAggregate], now: datetime
) -> PortfolioSummary:
    """
    Portfolio totals and the whole-portfolio XIRR.

    Unlike the per-ticker series, the terminal flow is left out when the
    portfolio's current value is exactly zero.
    """
    total_invested: float = sum(h.total_invested for h in holdings)
    current_value: float = sum(h.current_value for h in holdings)
    total_gain: float = current_value - total_invested
    total_gain_percentage: float = (total_gain / total_invested * 100) if total_invested > 0 else 0.0

    flows: list[CashFlow] = build_flow_series(
        lots, current_value, now, include_terminal=current_value != 0
    )

    return PortfolioSummary(
        holdings=list(holdings),
        total_invested=total_invested,
        current_value=current_value,
        total_gain=total_gain,
        total_gain_percentage=total_gain_percentage,
        xirr=solve_rate(flows),
    )
