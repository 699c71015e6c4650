import logging
from collections.abc import Sequence

from equity_tracker.models import (
    Alert,
    HoldingAggregate,
    PortfolioAnalysis,
    PortfolioSummary,
    PurchaseLot,
    ValuationSignal,
)
from equity_tracker.services.screen_service import ScreenService

logger = logging.getLogger(__name__)


def _ratio(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "-"


def display_portfolio(summary: PortfolioSummary) -> None:
    """
    Display portfolio totals and the per-ticker breakdown as an ASCII table.

    Args:
        summary: Portfolio summary to display
    """
    if not summary or not summary.holdings:
        print("No portfolio data to display.")
        return

    print("\n╔══════════════════════════════════════════════════════╗")
    print("║                  PORTFOLIO SUMMARY                   ║")
    print("╠═══════════════════╦══════════════════════════════════╣")
    print(f"║ Invested          ║ {summary.total_invested:32.2f} ║")
    print(f"║ Current value     ║ {summary.current_value:32.2f} ║")
    print(
        f"║ Gain / loss       ║ {summary.total_gain:22.2f} ({summary.total_gain_percentage:7.2f}%) ║"
    )
    print(f"║ XIRR              ║ {summary.xirr:31.2f}% ║")
    print(f"║ Holdings          ║ {len(summary.holdings):32} ║")
    print("╚═══════════════════╩══════════════════════════════════╝")

    display_holdings(summary.holdings)


def display_holdings(holdings: Sequence[HoldingAggregate]) -> None:
    if not holdings:
        print("No holdings to display.")
        return

    print(
        f"\n{'Ticker':<12} {'Lots':>4} {'Qty':>10} {'Avg price':>11} {'Invested':>12} "
        f"{'Price':>10} {'Value':>12} {'Gain %':>8} {'XIRR %':>8} {'P/E':>7} {'P/B':>7} {'EPS':>8}"
    )
    print("-" * 121)
    for h in holdings:
        basis: str = f"{h.weighted_avg_price:11.2f}" if h.has_valid_basis else f"{'n/a':>11}"
        print(
            f"{h.ticker[:12]:<12} {h.lot_count:>4} {h.total_quantity:>10.2f} {basis} "
            f"{h.total_invested:>12.2f} {h.current_price:>10.2f} {h.current_value:>12.2f} "
            f"{h.gain_percentage:>8.2f} {h.xirr:>8.2f} {h.avg_pe:>7.2f} {h.avg_pb:>7.2f} "
            f"{h.avg_eps:>8.2f}"
        )


def display_lots(lots: Sequence[PurchaseLot]) -> None:
    if not lots:
        print("No purchase lots recorded.")
        return

    print(
        f"\n{'Id':<32}  {'Ticker':<10} {'Date':<10} {'Qty':>10} {'Price':>10} "
        f"{'P/E':>7} {'P/B':>7} {'EPS':>8}  Note"
    )
    print("-" * 120)
    for lot in sorted(lots, key=lambda l: (l.ticker, l.purchase_date)):
        print(
            f"{lot.id:<32}  {lot.ticker[:10]:<10} {lot.purchase_date.isoformat():<10} "
            f"{lot.quantity:>10.2f} {lot.price:>10.2f} {lot.pe:>7.2f} {lot.pb:>7.2f} "
            f"{lot.eps:>8.2f}  {lot.note or ''}"
        )


def display_alerts(alerts: Sequence[Alert]) -> None:
    if not alerts:
        print("No alerts set.")
        return

    print(f"\n{'Id':<32}  {'Alert':<36} {'Status':<8} Triggered")
    print("-" * 100)
    for alert in alerts:
        status: str = "active" if alert.is_active else "fired"
        triggered: str = alert.triggered_at.isoformat(timespec="seconds") if alert.triggered_at else ""
        print(f"{alert.id:<32}  {alert.describe():<36} {status:<8} {triggered}")


def display_screen(signals: Sequence[ValuationSignal], side: str, metric: str) -> None:
    buy: bool = side.upper() == "BUY"
    basis: str = metric if metric.upper() != "ALL" else "PE/PB"
    print(f"\n{'Valuation discount' if buy else 'Valuation premium'} (historical {basis} multiples)")

    if not signals:
        if buy:
            print("None of your assets are trading below your average multiples currently.")
        else:
            print("None of your assets have exceeded your historical entry multiples.")
        return

    print(
        f"{'Ticker':<12} {'Avg P/E':>8} {'Live P/E':>9} {'P/E gap %':>10} "
        f"{'Avg P/B':>8} {'Live P/B':>9} {'P/B gap %':>10}  Signal"
    )
    print("-" * 90)
    for s in signals:
        pe_gap: float = s.pe_discount if buy else s.pe_premium
        pb_gap: float = s.pb_discount if buy else s.pb_premium
        action: str = "Accumulate" if buy else "Take Profit"
        if ScreenService.is_dual(s, side):
            action = f"{action} (dual)"
        print(
            f"{s.ticker[:12]:<12} {s.avg_pe:>8.2f} {_ratio(s.live_pe):>9} {pe_gap:>10.2f} "
            f"{s.avg_pb:>8.2f} {_ratio(s.live_pb):>9} {pb_gap:>10.2f}  {action}"
        )


def display_analysis(analysis: PortfolioAnalysis) -> None:
    print("\nPORTFOLIO REVIEW:")
    print(analysis.summary)
    print("\nADVICE:")
    print(analysis.advice)
