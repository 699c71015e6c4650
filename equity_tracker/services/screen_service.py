import logging
from collections.abc import Mapping, Sequence

from equity_tracker.models import HoldingAggregate, ValuationSignal

logger: logging.Logger = logging.getLogger(__name__)

SIDES: tuple[str, ...] = ("BUY", "SELL")
METRICS: tuple[str, ...] = ("ALL", "PE", "PB")


def relative_gap(historical: float, live: float | None) -> float:
    """Percent by which `live` sits below `historical`; 0 when either side is unusable."""
    if not live or not historical:
        return 0.0
    return (historical - live) / historical * 100


def valuation_signal(
    holding: HoldingAggregate, live_metrics: Mapping[str, float] | None
) -> ValuationSignal:
    live_metrics = live_metrics or {}
    live_pe: float | None = live_metrics.get("pe")
    live_pb: float | None = live_metrics.get("pb")
    return ValuationSignal(
        ticker=holding.ticker,
        avg_pe=holding.avg_pe,
        avg_pb=holding.avg_pb,
        live_pe=live_pe,
        live_pb=live_pb,
        pe_discount=relative_gap(holding.avg_pe, live_pe),
        pb_discount=relative_gap(holding.avg_pb, live_pb),
    )


class ScreenService:
    """
    Ranks holdings by how far live P/E and P/B multiples have moved from the
    investor's own average entry multiples.
    """

    @staticmethod
    def signals(
        holdings: Sequence[HoldingAggregate], metrics: Mapping[str, Mapping[str, float]]
    ) -> list[ValuationSignal]:
        """One signal per holding that has at least one live ratio."""
        result: list[ValuationSignal] = []
        for holding in holdings:
            live: Mapping[str, float] = metrics.get(holding.ticker, {})
            if live.get("pe") is None and live.get("pb") is None:
                continue
            result.append(valuation_signal(holding, live))
        return result

    @staticmethod
    def screen(
        holdings: Sequence[HoldingAggregate],
        metrics: Mapping[str, Mapping[str, float]],
        side: str = "BUY",
        metric: str = "ALL",
    ) -> list[ValuationSignal]:
        """
        Args:
            holdings: Current holdings
            metrics: Ticker -> live metrics ({'pe': .., 'pb': ..})
            side: 'BUY' keeps discounts, 'SELL' keeps premiums
            metric: 'PE', 'PB' or 'ALL' (either ratio qualifies)

        Returns:
            Qualifying signals, largest gap first
        """
        side, metric = side.upper(), metric.upper()
        if side not in SIDES:
            raise ValueError(f"Unknown side '{side}', expected one of {SIDES}")
        if metric not in METRICS:
            raise ValueError(f"Unknown metric '{metric}', expected one of {METRICS}")

        buy: bool = side == "BUY"

        def gaps(s: ValuationSignal) -> tuple[float, float]:
            return (s.pe_discount, s.pb_discount) if buy else (s.pe_premium, s.pb_premium)

        def qualifies(s: ValuationSignal) -> bool:
            pe_gap, pb_gap = gaps(s)
            if metric == "PE":
                return pe_gap > 0
            if metric == "PB":
                return pb_gap > 0
            return pe_gap > 0 or pb_gap > 0

        candidates: list[ValuationSignal] = [
            s for s in ScreenService.signals(holdings, metrics) if qualifies(s)
        ]
        logger.debug(f"{side} screen on {metric}: {len(candidates)} candidates")
        return sorted(
            candidates, key=lambda s: s.max_discount if buy else s.max_premium, reverse=True
        )

    @staticmethod
    def is_dual(signal: ValuationSignal, side: str = "BUY") -> bool:
        """Both P/E and P/B point the same way."""
        if side.upper() == "BUY":
            return signal.pe_discount > 0 and signal.pb_discount > 0
        return signal.pe_premium > 0 and signal.pb_premium > 0
