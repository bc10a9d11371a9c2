"""Tests for ownership, rental yield, and manual valuation helpers."""

from datetime import date
from decimal import Decimal

import pytest

from lotledger.engines.property import (
    add_property,
    apply_price_refresh,
    asset_annual_yield,
    calculate_net_value,
    calculate_yield,
    update_manual_price,
    update_rental_info,
)
from lotledger.exceptions import (
    DataValidationError,
    InvalidOwnershipPercentageError,
    NegativeAmountError,
    UnsupportedValuationMethodError,
)
from lotledger.models.enums import AssetType, ValuationMethod


class TestNetValue:
    def test_half_ownership(self):
        assert calculate_net_value(Decimal("500000"), Decimal("50")) == Decimal("250000")

    def test_full_ownership_default(self):
        assert calculate_net_value(Decimal("123.45")) == Decimal("123.45")

    def test_zero_ownership(self):
        assert calculate_net_value(Decimal("500000"), Decimal("0")) == Decimal("0")

    @pytest.mark.parametrize("pct", ["-0.01", "100.01", "150"])
    def test_out_of_range(self, pct):
        with pytest.raises(InvalidOwnershipPercentageError) as exc_info:
            calculate_net_value(Decimal("1000"), Decimal(pct))
        assert exc_info.value.percentage == Decimal(pct)


class TestYield:
    def test_annual_yield(self):
        assert calculate_yield(Decimal("2000"), Decimal("500000")) == Decimal("4.8")

    def test_zero_value_is_undefined(self):
        assert calculate_yield(Decimal("2000"), Decimal("0")) is None

    def test_asset_yield(self, property_asset):
        assert asset_annual_yield(property_asset) == Decimal("4.8")

    def test_non_rental_asset(self, stock_asset):
        assert asset_annual_yield(stock_asset) is None


class TestAddProperty:
    def test_partial_ownership_is_net(self):
        asset, holding, txn = add_property(
            asset_id="house",
            holding_id="h-house",
            transaction_id="t-house",
            portfolio_id="p1",
            name="12 Maple St.",
            purchase_price=Decimal("400000"),
            current_value=Decimal("500000"),
            purchase_date=date(2020, 5, 1),
            ownership_percentage=Decimal("50"),
            monthly_rent=Decimal("2000"),
        )
        assert asset.type == AssetType.REAL_ESTATE
        assert asset.valuation_method == ValuationMethod.MANUAL
        assert asset.symbol == "12_MAPLE_ST"
        assert holding.cost_basis == Decimal("200000")
        assert holding.current_value == Decimal("250000")
        assert holding.unrealized_gain == Decimal("50000")
        assert holding.lots[0].id == "lot-t-house"
        assert txn.price == Decimal("200000")
        assert asset.rental_info.monthly_rent == Decimal("2000")

    def test_invalid_ownership(self):
        with pytest.raises(InvalidOwnershipPercentageError):
            add_property(
                "house", "h", "t", "p1", "House", Decimal("1"), Decimal("1"),
                date(2020, 1, 1), ownership_percentage=Decimal("101"),
            )


class TestManualPrice:
    def test_update_manual_price(self, property_asset, make_lot, make_holding):
        holding = make_holding(
            "h1", property_asset.id,
            [make_lot("lot-1", "1", "200000", date(2020, 5, 1))],
            current_value="250000",
            ownership="50",
        )
        asset, holdings = update_manual_price(
            property_asset, [holding], Decimal("600000"), as_of=date(2024, 6, 1)
        )
        assert asset.current_price == Decimal("600000")
        assert asset.price_updated_at == date(2024, 6, 1)
        assert holdings[0].current_value == Decimal("300000")
        assert holdings[0].unrealized_gain == Decimal("100000")

    def test_auto_asset_rejected(self, stock_asset):
        with pytest.raises(UnsupportedValuationMethodError):
            update_manual_price(stock_asset, [], Decimal("10"))

    def test_negative_price_rejected(self, property_asset):
        with pytest.raises(NegativeAmountError):
            update_manual_price(property_asset, [], Decimal("-1"))

    def test_price_refresh_rejects_manual(self, property_asset):
        with pytest.raises(UnsupportedValuationMethodError):
            apply_price_refresh(property_asset, [], Decimal("10"))

    def test_price_refresh_auto(self, stock_asset, make_lot, make_holding):
        holding = make_holding(
            "h1", stock_asset.id, [make_lot("lot-1", "10", "100", date(2023, 1, 1))]
        )
        asset, holdings = apply_price_refresh(stock_asset, [holding], Decimal("120"))
        assert asset.current_price == Decimal("120")
        assert holdings[0].current_value == Decimal("1200")


class TestRentalInfo:
    def test_update_rent(self, property_asset):
        updated = update_rental_info(property_asset, monthly_rent=Decimal("2500"))
        assert updated.rental_info.monthly_rent == Decimal("2500")
        assert updated.rental_info.is_rental
        assert property_asset.rental_info.monthly_rent == Decimal("2000")

    def test_non_real_estate_rejected(self, stock_asset):
        with pytest.raises(DataValidationError):
            update_rental_info(stock_asset, monthly_rent=Decimal("100"))
