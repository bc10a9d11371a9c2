"""Unit tests for the ManualAdapter."""

import json
from datetime import date
from decimal import Decimal

import pytest

from lotledger.exceptions import DataValidationError
from lotledger.ingestion.manual import ManualAdapter
from lotledger.models.enums import AssetType, CostBasisMethod
from lotledger.models.transactions import BuyTransaction, SellTransaction


@pytest.fixture
def adapter():
    return ManualAdapter()


@pytest.fixture
def portfolio_json():
    return {
        "portfolio_id": "brokerage",
        "assets": [
            {"id": "a1", "symbol": "ACME", "name": "Acme Corp", "type": "stock",
             "current_price": "150"},
            {"id": "h1", "symbol": "MAPLE_ST", "name": "Maple St", "type": "real_estate",
             "valuation_method": "MANUAL", "current_price": "500000"},
        ],
        "transactions": [
            {"id": "t1", "asset_id": "a1", "type": "buy", "trade_date": "2023-01-15",
             "quantity": "50", "price": "140"},
            {"id": "t2", "asset_id": "a1", "type": "buy", "trade_date": "2023-06-20",
             "quantity": "50", "price": "160"},
            {"id": "t3", "asset_id": "a1", "type": "sell", "trade_date": "2024-03-01",
             "quantity": "20", "price": "180"},
        ],
        "holdings": [
            {"id": "house", "asset_id": "h1", "quantity": "1", "cost_basis": "200000",
             "current_value": "250000", "ownership_percentage": "50"},
        ],
        "selections": {"t3": {"lot-t2": "20"}},
    }


def _write(tmp_path, data):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(data))
    return path


class TestParse:
    def test_parse_models(self, adapter, portfolio_json, tmp_path):
        result = adapter.parse(_write(tmp_path, portfolio_json))

        assert result.portfolio_id == "brokerage"
        assert [a.type for a in result.assets] == [AssetType.STOCK, AssetType.REAL_ESTATE]
        assert isinstance(result.transactions[0], BuyTransaction)
        assert isinstance(result.transactions[2], SellTransaction)
        assert all(t.portfolio_id == "brokerage" for t in result.transactions)
        assert result.holdings[0].portfolio_id == "brokerage"
        assert result.selections == {"t3": {"lot-t2": Decimal("20")}}

    def test_float_prices_become_decimals(self, adapter, portfolio_json, tmp_path):
        portfolio_json["transactions"][0]["price"] = 140.1
        result = adapter.parse(_write(tmp_path, portfolio_json))
        assert result.transactions[0].price == Decimal("140.1")

    def test_default_portfolio_id(self, adapter, portfolio_json, tmp_path):
        del portfolio_json["portfolio_id"]
        result = adapter.parse(_write(tmp_path, portfolio_json))
        assert result.portfolio_id == "default"

    def test_missing_file(self, adapter, tmp_path):
        with pytest.raises(FileNotFoundError):
            adapter.parse(tmp_path / "nope.json")

    def test_invalid_record(self, adapter, portfolio_json, tmp_path):
        portfolio_json["transactions"][0]["type"] = "gift"
        with pytest.raises(DataValidationError):
            adapter.parse(_write(tmp_path, portfolio_json))

    def test_not_an_object(self, adapter, tmp_path):
        with pytest.raises(DataValidationError):
            adapter.parse(_write(tmp_path, [1, 2]))


class TestValidate:
    def test_clean_file(self, adapter, portfolio_json, tmp_path):
        assert adapter.validate(adapter.parse(_write(tmp_path, portfolio_json))) == []

    def test_cross_record_errors(self, adapter, portfolio_json, tmp_path):
        portfolio_json["assets"].append(portfolio_json["assets"][0])
        portfolio_json["transactions"].append(
            {"id": "t1", "asset_id": "ghost", "type": "buy", "trade_date": "2024-01-01",
             "quantity": "1", "price": "1"}
        )
        portfolio_json["selections"]["t99"] = {"lot-t1": "1"}
        portfolio_json["ownership"] = {"a1": "120"}

        errors = adapter.validate(adapter.parse(_write(tmp_path, portfolio_json)))
        assert "Duplicate asset id: a1" in errors
        assert "Duplicate transaction id: t1" in errors
        assert "Transaction t1: unknown asset ghost" in errors
        assert "Selection for unknown transaction t99" in errors
        assert any("Ownership for a1" in e for e in errors)


class TestBuildHoldings:
    def test_replays_transactions_and_keeps_prebuilt(self, adapter, portfolio_json, tmp_path):
        result = adapter.parse(_write(tmp_path, portfolio_json))
        holdings = {h.id: h for h in adapter.build_holdings(result)}

        assert set(holdings) == {"house", "brokerage-a1"}
        acme = holdings["brokerage-a1"]
        assert acme.quantity == Decimal("80")
        # The selection consumed the second lot, not the first.
        remaining = {lot.id: lot.remaining_quantity for lot in acme.lots}
        assert remaining == {"lot-t1": Decimal("50"), "lot-t2": Decimal("30")}
        assert acme.current_value == Decimal("12000")

    def test_method_applies_to_unselected_sells(self, adapter, portfolio_json, tmp_path):
        portfolio_json["selections"] = {}
        result = adapter.parse(_write(tmp_path, portfolio_json))
        holdings = adapter.build_holdings(result, method=CostBasisMethod.LIFO)
        acme = next(h for h in holdings if h.asset_id == "a1")
        remaining = {lot.id: lot.remaining_quantity for lot in acme.lots}
        assert remaining == {"lot-t1": Decimal("50"), "lot-t2": Decimal("30")}
        assert acme.lots[0].purchase_date == date(2023, 1, 15)

    def test_ownership_scales_value(self, adapter, portfolio_json, tmp_path):
        portfolio_json["ownership"] = {"a1": "50"}
        result = adapter.parse(_write(tmp_path, portfolio_json))
        acme = next(h for h in adapter.build_holdings(result) if h.asset_id == "a1")
        assert acme.current_value == Decimal("6000")
        # 30 @ 140 and 50 @ 160 left, basis halved with the value
        assert acme.cost_basis == Decimal("6100")
        assert acme.unrealized_gain == Decimal("-100")
