from datetime import date, datetime

import pytest

from equity_tracker.aggregator import (
    aggregate_holdings,
    build_flow_series,
    group_lots,
    normalize_ticker,
    summarize_portfolio,
)
from equity_tracker.models import CashFlow


class TestNormalizeTicker:
    @pytest.mark.parametrize("raw", ["abc", "ABC ", "  Abc"])
    def test_trims_and_uppercases(self, raw):
        assert normalize_ticker(raw) == "ABC"


class TestGroupLots:
    def test_merges_variant_spellings(self, make_lot):
        groups = group_lots([make_lot(ticker="abc"), make_lot(ticker="ABC "), make_lot(ticker="XYZ")])
        assert list(groups) == ["ABC", "XYZ"]
        assert len(groups["ABC"]) == 2


class TestBuildFlowSeries:
    def test_outflows_then_terminal_inflow(self, make_lot, now):
        lots = [
            make_lot(purchase_date=date(2023, 6, 1), price=10, quantity=5),
            make_lot(purchase_date=date(2023, 1, 1), price=20, quantity=1),
        ]
        flows = build_flow_series(lots, terminal_value=80.0, now=now)
        assert flows == [
            CashFlow(-20.0, datetime(2023, 1, 1)),
            CashFlow(-50.0, datetime(2023, 6, 1)),
            CashFlow(80.0, now),
        ]

    def test_terminal_flow_can_be_left_out(self, make_lot, now):
        flows = build_flow_series([make_lot()], terminal_value=0.0, now=now, include_terminal=False)
        assert [f.amount for f in flows] == [-1000.0]


class TestAggregateHoldings:
    def test_empty_lots(self, now):
        assert aggregate_holdings([], {}, now) == []

    def test_weighted_average_price(self, make_lot, now):
        lots = [
            make_lot(ticker="X", price=100, quantity=10),
            make_lot(ticker="X", price=200, quantity=10),
        ]
        [holding] = aggregate_holdings(lots, {"X": 150.0}, now)

        assert holding.ticker == "X"
        assert holding.weighted_avg_price == 150
        assert holding.total_quantity == 20
        assert holding.total_invested == 3000
        assert holding.lot_count == 2
        assert holding.has_valid_basis

    def test_ticker_normalization(self, make_lot, now):
        holdings = aggregate_holdings(
            [make_lot(ticker="abc"), make_lot(ticker="ABC ")], {"abc": 120.0}, now
        )
        assert [h.ticker for h in holdings] == ["ABC"]
        assert holdings[0].current_price == 120.0

    def test_ordering_by_total_invested(self, make_lot, now):
        lots = [
            make_lot(ticker="SMALL", price=50, quantity=10),
            make_lot(ticker="BIG", price=200, quantity=10),
            make_lot(ticker="MID", price=100, quantity=10),
        ]
        holdings = aggregate_holdings(lots, {}, now)
        assert [h.total_invested for h in holdings] == [2000, 1000, 500]
        assert [h.ticker for h in holdings] == ["BIG", "MID", "SMALL"]

    def test_ties_keep_first_seen_order(self, make_lot, now):
        lots = [make_lot(ticker="B"), make_lot(ticker="A"), make_lot(ticker="C")]
        assert [h.ticker for h in aggregate_holdings(lots, {}, now)] == ["B", "A", "C"]

    def test_idempotent(self, make_lot, now):
        lots = [
            make_lot(ticker="ABC", purchase_date=date(2022, 3, 4), price=95.5, quantity=7, pe=18.2),
            make_lot(ticker="XYZ", purchase_date=date(2023, 8, 9), price=12.25, quantity=40, pb=2.1),
        ]
        prices = {"ABC": 110.0, "XYZ": 11.0}
        assert aggregate_holdings(lots, prices, now) == aggregate_holdings(lots, prices, now)

    def test_missing_price_counts_as_zero(self, make_lot, now):
        [holding] = aggregate_holdings([make_lot()], {}, now)
        assert holding.current_price == 0
        assert holding.current_value == 0
        assert holding.gain_percentage == -100
        # Terminal flow of 0 leaves a single-sign series
        assert holding.xirr == 0

    def test_xirr_per_ticker(self, make_lot, now):
        [holding] = aggregate_holdings(
            [make_lot(purchase_date=date(2023, 1, 1), price=100, quantity=10)], {"ABC": 110.0}, now
        )
        assert holding.xirr == pytest.approx(10.0, abs=0.01)

    def test_ratio_mean_is_unweighted_by_default(self, make_lot, now):
        lots = [
            make_lot(quantity=1, pe=10, pb=1, eps=2),
            make_lot(quantity=9, pe=20, pb=3, eps=4),
        ]
        [holding] = aggregate_holdings(lots, {}, now)
        assert (holding.avg_pe, holding.avg_pb, holding.avg_eps) == (15, 2, 3)

    def test_ratio_mean_weighted_by_quantity(self, make_lot, now):
        lots = [make_lot(quantity=1, pe=10), make_lot(quantity=9, pe=20)]
        [holding] = aggregate_holdings(lots, {}, now, ratio_weighting="quantity")
        assert holding.avg_pe == pytest.approx(19.0)

    def test_unknown_weighting_rejected(self, make_lot, now):
        with pytest.raises(ValueError, match="ratio weighting"):
            aggregate_holdings([make_lot()], {}, now, ratio_weighting="value")

    def test_zero_quantity_has_no_cost_basis(self, make_lot, now):
        [holding] = aggregate_holdings([make_lot(quantity=0)], {"ABC": 5.0}, now)
        assert not holding.has_valid_basis
        assert holding.weighted_avg_price == 0


class TestSummarizePortfolio:
    def test_totals(self, make_lot, now):
        lots = [
            make_lot(ticker="ABC", price=100, quantity=10),
            make_lot(ticker="XYZ", price=50, quantity=20),
        ]
        holdings = aggregate_holdings(lots, {"ABC": 120.0, "XYZ": 40.0}, now)
        summary = summarize_portfolio(lots, holdings, now)

        assert summary.total_invested == 2000
        assert summary.current_value == 2000
        assert summary.total_gain == 0
        assert summary.total_gain_percentage == 0
        assert summary.xirr == pytest.approx(0.0, abs=0.01)
        assert summary.holdings == holdings

    def test_empty(self, now):
        summary = summarize_portfolio([], [], now)
        assert summary.total_invested == 0
        assert summary.total_gain_percentage == 0
        assert summary.xirr == 0

    def test_zero_value_portfolio_drops_terminal_flow(self, make_lot, now):
        lots = [make_lot()]
        holdings = aggregate_holdings(lots, {}, now)
        summary = summarize_portfolio(lots, holdings, now)
        assert summary.current_value == 0
        assert summary.xirr == 0
