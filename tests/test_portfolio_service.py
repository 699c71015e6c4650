from datetime import date, datetime

import pytest

from equity_tracker.models import MarketData
from equity_tracker.services.portfolio_service import PortfolioService, validate_lot


class TestValidateLot:
    @pytest.mark.parametrize(
        "changes, message",
        [
            ({"quantity": 0}, "Quantity"),
            ({"quantity": -1}, "Quantity"),
            ({"price": -0.01}, "Price"),
            ({"ticker": ""}, "Ticker"),
        ],
    )
    def test_rejects_invalid_lots(self, make_lot, changes, message):
        with pytest.raises(ValueError, match=message):
            validate_lot(make_lot(**changes))

    def test_zero_price_is_allowed(self, make_lot):
        validate_lot(make_lot(price=0))


class TestPortfolioService:
    def test_add_lot_normalises_and_seeds_price(self, portfolio_service: PortfolioService, market_repo):
        lot = portfolio_service.add_lot("infy ", date(2023, 1, 1), price=1500, quantity=2)

        assert lot.ticker == "INFY"
        assert len(lot.id) == 32
        assert market_repo.get_price("INFY") == 1500
        assert portfolio_service.list_lots() == [lot]

    def test_add_lot_keeps_known_price(self, portfolio_service: PortfolioService, market_repo):
        market_repo.set_price("INFY", 1600)
        _ = portfolio_service.add_lot("INFY", date(2023, 1, 1), price=1500, quantity=2)
        assert market_repo.get_price("INFY") == 1600

    def test_add_invalid_lot_is_not_stored(self, portfolio_service: PortfolioService):
        with pytest.raises(ValueError):
            _ = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=10, quantity=0)
        assert portfolio_service.list_lots() == []

    def test_update_lot(self, portfolio_service: PortfolioService, now: datetime):
        lot = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=100, quantity=10)
        updated = portfolio_service.update_lot(lot.id, quantity=20, note="topped up")

        assert updated.id == lot.id
        assert updated.quantity == 20
        assert updated.note == "topped up"
        assert portfolio_service.get_holdings(now)[0].total_quantity == 20

    def test_update_unknown_lot(self, portfolio_service: PortfolioService):
        with pytest.raises(KeyError):
            _ = portfolio_service.update_lot("missing", quantity=1)

    def test_update_rejects_id_and_unknown_fields(self, portfolio_service: PortfolioService):
        lot = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=100, quantity=10)
        with pytest.raises(ValueError, match="Cannot edit"):
            _ = portfolio_service.update_lot(lot.id, id="other")
        with pytest.raises(ValueError, match="Cannot edit"):
            _ = portfolio_service.update_lot(lot.id, colour="red")

    def test_remove_lot(self, portfolio_service: PortfolioService, now: datetime):
        lot = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=100, quantity=10)
        portfolio_service.remove_lot(lot.id)
        assert portfolio_service.get_holdings(now) == []
        with pytest.raises(KeyError):
            portfolio_service.remove_lot(lot.id)

    def test_list_lots_by_ticker(self, portfolio_service: PortfolioService):
        _ = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=100, quantity=10)
        xyz = portfolio_service.add_lot("XYZ", date(2023, 1, 1), price=10, quantity=10)
        assert portfolio_service.list_lots("xyz") == [xyz]

    def test_add_lots_bulk(self, portfolio_service: PortfolioService, make_lot):
        count = portfolio_service.add_lots([make_lot(ticker="abc"), make_lot(ticker="xyz")])
        assert count == 2
        assert portfolio_service.tickers() == ["ABC", "XYZ"]

    def test_summary_follows_price_changes(self, portfolio_service: PortfolioService, now: datetime):
        _ = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=100, quantity=10)
        assert portfolio_service.get_portfolio_summary(now).total_gain == 0

        portfolio_service.set_current_price("abc", 110)
        summary = portfolio_service.get_portfolio_summary(now)
        assert summary.current_value == 1100
        assert summary.total_gain_percentage == pytest.approx(10.0)
        assert summary.xirr == pytest.approx(10.0, abs=0.01)

    def test_negative_price_rejected(self, portfolio_service: PortfolioService):
        with pytest.raises(ValueError):
            portfolio_service.set_current_price("ABC", -1)

    def test_derived_values_are_cached_per_version(self, portfolio_service: PortfolioService, now):
        _ = portfolio_service.add_lot("ABC", date(2023, 1, 1), price=100, quantity=10)
        first = portfolio_service.get_holdings(now)
        assert portfolio_service.get_holdings(now) is first

        portfolio_service.invalidate()
        assert portfolio_service.get_holdings(now) is not first
        assert portfolio_service.get_holdings(now) == first

    def test_apply_market_data(self, portfolio_service: PortfolioService, market_repo):
        count = portfolio_service.apply_market_data(
            {"abc": MarketData(price=12.5, pe=20.0, pb=None, eps=1.5)}
        )
        assert count == 1
        assert market_repo.get_price("ABC") == 12.5
        assert market_repo.get_metrics()["ABC"] == {"pe": 20.0, "eps": 1.5}

    def test_set_metric(self, portfolio_service: PortfolioService, market_repo):
        portfolio_service.set_metric("abc", "PE", 18.0)
        assert market_repo.get_metrics() == {"ABC": {"pe": 18.0}}
        with pytest.raises(ValueError):
            portfolio_service.set_metric("abc", "roe", 1.0)
