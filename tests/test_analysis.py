import json
from unittest.mock import MagicMock

from equity_tracker.analysis import (
    EMPTY_ANALYSIS,
    FALLBACK_ANALYSIS,
    generate_portfolio_analysis,
    portfolio_snapshot,
)
from equity_tracker.models import HoldingAggregate, PortfolioAnalysis


def holding() -> HoldingAggregate:
    return HoldingAggregate(
        ticker="ABC",
        lot_count=2,
        total_quantity=20,
        total_invested=2000,
        weighted_avg_price=100,
        avg_pe=18.0,
        avg_pb=2.5,
        avg_eps=5.0,
        current_price=125,
        xirr=12.0,
    )


def client_returning(content: str | None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value.choices = [
        MagicMock(message=MagicMock(content=content))
    ]
    return client


def test_snapshot():
    [row] = portfolio_snapshot([holding()])
    assert row["ticker"] == "ABC"
    assert row["weightedAvgBuyPrice"] == "100.00"
    assert row["totalGainPercent"] == "25.00%"
    assert row["sharesHeld"] == 20


def test_no_holdings_skips_the_model():
    client = MagicMock()
    assert generate_portfolio_analysis([], client=client) is EMPTY_ANALYSIS
    client.chat.completions.create.assert_not_called()


def test_parses_model_reply():
    client = client_returning(json.dumps({"summary": "Solid entries.", "advice": "Hold."}))

    analysis = generate_portfolio_analysis([holding()], client=client, model="test-model")

    assert analysis == PortfolioAnalysis(summary="Solid entries.", advice="Hold.")
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert "ABC" in kwargs["messages"][-1]["content"]
    assert kwargs["response_format"]["type"] == "json_schema"


def test_empty_reply():
    assert generate_portfolio_analysis([holding()], client=client_returning("{}")) is EMPTY_ANALYSIS


def test_client_failure_falls_back():
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError("network down")
    assert generate_portfolio_analysis([holding()], client=client) is FALLBACK_ANALYSIS


def test_malformed_reply_falls_back():
    assert (
        generate_portfolio_analysis([holding()], client=client_returning("not json"))
        is FALLBACK_ANALYSIS
    )
