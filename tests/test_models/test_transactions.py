"""Tests for the transaction tagged union and core models."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from lotledger.models.enums import TransactionType
from lotledger.models.portfolio import TaxLot
from lotledger.models.settings import Settings
from lotledger.models.transactions import (
    TRANSACTION_ADAPTER,
    BuyTransaction,
    CashFlowTransaction,
    EsppPurchaseTransaction,
    RsuVestTransaction,
    SellTransaction,
    SplitTransaction,
)


class TestTransactionUnion:
    def _validate(self, **data):
        base = {"id": "t1", "portfolio_id": "p1", "asset_id": "a1", "trade_date": "2024-01-15"}
        return TRANSACTION_ADAPTER.validate_python({**base, **data})

    def test_buy_variants(self):
        for kind in ("buy", "transfer_in", "reinvestment"):
            txn = self._validate(type=kind, quantity="10", price="5")
            assert isinstance(txn, BuyTransaction)
            assert txn.type == TransactionType(kind)

    def test_sell_variants(self):
        for kind in ("sell", "transfer_out"):
            assert isinstance(self._validate(type=kind, quantity="1", price="5"), SellTransaction)

    def test_espp_purchase(self):
        txn = self._validate(
            type="espp_purchase", quantity="10", price="85", grant_date="2023-07-01",
            market_price_at_purchase="100",
        )
        assert isinstance(txn, EsppPurchaseTransaction)
        assert txn.grant_date == date(2023, 7, 1)

    def test_rsu_vest_net_quantity(self):
        txn = self._validate(type="rsu_vest", gross_shares="100", shares_withheld="37", price="50")
        assert isinstance(txn, RsuVestTransaction)
        assert txn.quantity == Decimal("63")
        assert txn.total_amount == Decimal("3150")

    def test_split_and_cash_flow(self):
        assert isinstance(self._validate(type="split", ratio="2"), SplitTransaction)
        assert isinstance(self._validate(type="dividend", amount="12.5"), CashFlowTransaction)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            self._validate(type="gift", quantity="1", price="1")

    def test_variant_fields_required(self):
        with pytest.raises(ValidationError):
            self._validate(type="espp_purchase", quantity="10", price="85")

    def test_frozen(self):
        txn = self._validate(type="buy", quantity="10", price="5")
        with pytest.raises(ValidationError):
            txn.quantity = Decimal("11")

    def test_json_round_trip_keeps_variant(self):
        txn = self._validate(type="rsu_vest", gross_shares="10", price="50")
        restored = TRANSACTION_ADAPTER.validate_json(txn.model_dump_json())
        assert restored == txn

    def test_totals(self):
        buy = self._validate(type="buy", quantity="10", price="5", fees="1")
        sell = self._validate(type="sell", quantity="10", price="5", fees="1")
        assert buy.total_amount == Decimal("51")
        assert sell.total_amount == Decimal("49")


class TestModels:
    def test_lot_quantities_non_negative(self):
        with pytest.raises(ValidationError):
            TaxLot(
                id="l", quantity=Decimal("1"), purchase_price=Decimal("1"),
                purchase_date=date(2024, 1, 1), remaining_quantity=Decimal("-1"),
            )

    def test_lot_remaining_above_quantity_rejected(self):
        with pytest.raises(ValidationError):
            TaxLot(
                id="l", quantity=Decimal("10"), purchase_price=Decimal("1"),
                purchase_date=date(2024, 1, 1), remaining_quantity=Decimal("25"),
            )

    def test_lot_remaining_must_equal_quantity_less_sold(self):
        with pytest.raises(ValidationError):
            TaxLot(
                id="l", quantity=Decimal("10"), purchase_price=Decimal("1"),
                purchase_date=date(2024, 1, 1), sold_quantity=Decimal("4"),
                remaining_quantity=Decimal("5"),
            )

    def test_consistent_lot_accepted(self):
        lot = TaxLot(
            id="l", quantity=Decimal("10"), purchase_price=Decimal("1"),
            purchase_date=date(2024, 1, 1), sold_quantity=Decimal("4"),
            remaining_quantity=Decimal("6"),
        )
        assert lot.cost_basis == Decimal("6")

    def test_settings_defaults(self, tmp_path):
        settings = Settings.load(tmp_path / "missing.json")
        assert settings.tax.short_term_rate == Decimal("0.24")
        assert settings.tax.long_term_rate == Decimal("0.15")
        assert settings.tax.state_rate == Decimal("0")
        assert settings.thresholds.cash_drag_percent == Decimal("20")
        assert settings.thresholds.concentration_percent == Decimal("15")
        assert settings.thresholds.aging_window_days == 30

    def test_settings_from_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"tax": {"short_term_rate": "0.32", "cost_basis_method": "LIFO"}}')
        settings = Settings.load(path)
        assert settings.tax.short_term_rate == Decimal("0.32")
        assert settings.tax.cost_basis_method == "LIFO"

    def test_rate_out_of_range(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"tax": {"short_term_rate": "1.5"}}')
        with pytest.raises(ValidationError):
            Settings.load(path)
