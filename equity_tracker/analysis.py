"""Narrative portfolio review generated by an OpenAI model."""

import json
import logging
from collections.abc import Sequence
from typing import Any

from openai import OpenAI

from equity_tracker.models import HoldingAggregate, PortfolioAnalysis

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_MODEL: str = "gpt-4o-mini"

FALLBACK_ANALYSIS = PortfolioAnalysis(
    summary="Unable to generate analysis at this time.",
    advice="Try again after adding more data points.",
)
EMPTY_ANALYSIS = PortfolioAnalysis(
    summary="No analysis available.",
    advice="Please add more stocks.",
)

RESPONSE_SCHEMA: dict[str, Any] = {
    "name": "portfolio_analysis",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "summary": {"type": "string"},
            "advice": {"type": "string"},
        },
        "required": ["summary", "advice"],
        "additionalProperties": False,
    },
}


def portfolio_snapshot(holdings: Sequence[HoldingAggregate]) -> list[dict[str, Any]]:
    """Compact per-holding view sent to the model."""
    snapshot: list[dict[str, Any]] = []
    for h in holdings:
        gain: float = (
            (h.current_price - h.weighted_avg_price) / h.weighted_avg_price * 100
            if h.weighted_avg_price
            else 0.0
        )
        snapshot.append(
            {
                "ticker": h.ticker,
                "avgPe": f"{h.avg_pe:.2f}",
                "avgPb": f"{h.avg_pb:.2f}",
                "weightedAvgBuyPrice": f"{h.weighted_avg_price:.2f}",
                "currentPrice": f"{h.current_price:.2f}",
                "totalGainPercent": f"{gain:.2f}%",
                "sharesHeld": h.total_quantity,
            }
        )
    return snapshot


def generate_portfolio_analysis(
    holdings: Sequence[HoldingAggregate],
    client: OpenAI | None = None,
    model: str = DEFAULT_MODEL,
) -> PortfolioAnalysis:
    """
    Ask the model for a short valuation-vs-performance review and one piece of advice.

    Never raises: any client or parsing failure returns FALLBACK_ANALYSIS.
    """
    if not holdings:
        return EMPTY_ANALYSIS

    prompt: str = (
        "Analyze this stock purchase portfolio performance and valuation: "
        f"{json.dumps(portfolio_snapshot(holdings), ensure_ascii=True)}. "
        "Provide a professional summary of the portfolio's valuation versus performance. "
        "Is the user buying at good valuations? Provide one key piece of strategic advice."
    )

    try:
        client = client or OpenAI()
        response = client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "system",
                    "content": "You are an equity portfolio reviewer. Keep it concise.",
                },
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_schema", "json_schema": RESPONSE_SCHEMA},
        )
        parsed: dict[str, Any] = json.loads(response.choices[0].message.content or "{}")
        if not parsed.get("summary"):
            return EMPTY_ANALYSIS
        return PortfolioAnalysis(summary=parsed["summary"], advice=parsed.get("advice", ""))
    except Exception as e:
        logger.error(f"Portfolio analysis failed: {e}", exc_info=True)
        return FALLBACK_ANALYSIS
