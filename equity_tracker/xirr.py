"""
Money-weighted rate of return (XIRR) over irregular, dated cash flows.

Solves  sum(amount_i / (1 + r) ** t_i) == 0  for r, where t_i is the number of
days between flow i and the earliest flow, divided by 365. Newton-Raphson,
seeded at 10%, capped at 100 iterations. Results are percentages.
"""

import logging
import math
from collections.abc import Sequence

from equity_tracker.models import CashFlow

logger: logging.Logger = logging.getLogger(__name__)

INITIAL_GUESS: float = 0.10
MAX_ITERATIONS: int = 100
PRECISION: float = 1e-6
MIN_DERIVATIVE: float = 1e-12
DAYS_PER_YEAR: float = 365.0
SECONDS_PER_DAY: float = 86400.0


def year_fractions(flows: Sequence[CashFlow]) -> list[float]:
    """Elapsed time of each flow from the earliest one, in 365-day years."""
    origin = min(flow.when for flow in flows)
    return [
        (flow.when - origin).total_seconds() / SECONDS_PER_DAY / DAYS_PER_YEAR for flow in flows
    ]


def net_present_value(flows: Sequence[CashFlow], rate: float) -> float:
    """NPV of the flows at an annual rate given as a fraction (0.1 == 10%)."""
    if not flows:
        return 0.0
    return sum(
        flow.amount / math.pow(1 + rate, t) for flow, t in zip(flows, year_fractions(flows))
    )


def _has_sign_change(flows: Sequence[CashFlow]) -> bool:
    has_inflow = any(flow.amount > 0 for flow in flows)
    has_outflow = any(flow.amount < 0 for flow in flows)
    return has_inflow and has_outflow


def solve_rate(flows: Sequence[CashFlow]) -> float:
    """
    Annualised money-weighted return of a cash-flow series, in percent.

    Args:
        flows: Signed, dated cash flows (outflows negative). Order does not
            matter; time is measured from the earliest flow.

    Returns:
        The rate as a percentage. 0.0 for fewer than two flows or a series
        without both an inflow and an outflow. If the derivative flattens
        out, or the iteration budget runs out, the last estimate is returned
        as a best-effort approximation.
    """
    if len(flows) < 2:
        return 0.0
    if not _has_sign_change(flows):
        logger.debug("Cash flows all share one sign; no finite rate exists")
        return 0.0

    times: list[float] = year_fractions(flows)
    rate: float = INITIAL_GUESS

    for iteration in range(MAX_ITERATIONS):
        f = 0.0
        df = 0.0
        try:
            for flow, t in zip(flows, times):
                factor = math.pow(1 + rate, t)
                f += flow.amount / factor
                df -= flow.amount * t / (factor * (1 + rate))
        except (ValueError, OverflowError, ZeroDivisionError):
            # 1 + rate left the positive reals, or the powers overflowed
            logger.warning(f"XIRR iteration {iteration} left the solvable domain at rate={rate}")
            return rate * 100

        if abs(df) < MIN_DERIVATIVE:
            logger.debug(f"XIRR derivative vanished at iteration {iteration}, rate={rate}")
            return rate * 100

        new_rate: float = rate - f / df
        if not math.isfinite(new_rate):
            logger.warning(f"XIRR produced a non-finite step at iteration {iteration}")
            return rate * 100
        if abs(new_rate - rate) < PRECISION:
            return new_rate * 100
        rate = new_rate

    logger.debug(f"XIRR did not converge in {MAX_ITERATIONS} iterations, last rate={rate}")
    return rate * 100
