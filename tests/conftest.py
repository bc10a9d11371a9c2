"""Shared test fixtures for lotledger."""

from datetime import date
from decimal import Decimal

import pytest

from lotledger.models.enums import AssetType, LotType, TransactionType, ValuationMethod
from lotledger.models.portfolio import Asset, Holding, RentalInfo, TaxLot
from lotledger.models.transactions import BuyTransaction, SellTransaction
from lotledger.normalization.ledger import LedgerBuilder


@pytest.fixture
def stock_asset() -> Asset:
    return Asset(
        id="asset-acme",
        symbol="ACME",
        name="Acme Corp",
        type=AssetType.STOCK,
        current_price=Decimal("150.00"),
    )


@pytest.fixture
def cash_asset() -> Asset:
    return Asset(id="asset-cash", symbol="USD", name="Cash", type=AssetType.CASH)


@pytest.fixture
def property_asset() -> Asset:
    return Asset(
        id="asset-house",
        symbol="MAPLE_ST",
        name="Maple St",
        type=AssetType.REAL_ESTATE,
        current_price=Decimal("500000"),
        valuation_method=ValuationMethod.MANUAL,
        rental_info=RentalInfo(is_rental=True, monthly_rent=Decimal("2000")),
    )


@pytest.fixture
def make_lot():
    def _make(
        lot_id: str,
        quantity: str,
        price: str,
        purchased: date,
        remaining: str | None = None,
        lot_type: LotType = LotType.STANDARD,
        **extra,
    ) -> TaxLot:
        qty = Decimal(quantity)
        rem = Decimal(remaining) if remaining is not None else qty
        return TaxLot(
            id=lot_id,
            quantity=qty,
            purchase_price=Decimal(price),
            purchase_date=purchased,
            sold_quantity=qty - rem,
            remaining_quantity=rem,
            lot_type=lot_type,
            **extra,
        )

    return _make


@pytest.fixture
def make_holding():
    def _make(
        holding_id: str,
        asset_id: str,
        lots: list[TaxLot],
        current_value: str | None = None,
        ownership: str = "100",
    ) -> Holding:
        quantity = sum((lot.remaining_quantity for lot in lots), Decimal("0"))
        cost_basis = sum((lot.cost_basis for lot in lots), Decimal("0"))
        value = Decimal(current_value) if current_value is not None else cost_basis
        return Holding(
            id=holding_id,
            portfolio_id="p1",
            asset_id=asset_id,
            quantity=quantity,
            cost_basis=cost_basis,
            average_cost=cost_basis / quantity if quantity else Decimal("0"),
            current_value=value,
            unrealized_gain=value - cost_basis,
            ownership_percentage=Decimal(ownership),
            lots=lots,
        )

    return _make


@pytest.fixture
def builder() -> LedgerBuilder:
    return LedgerBuilder()


@pytest.fixture
def fifo_buys() -> list[BuyTransaction]:
    """50 @ 140 on 2023-01-15, then 50 @ 160 on 2023-06-20."""
    return [
        BuyTransaction(
            id="t1",
            portfolio_id="p1",
            asset_id="asset-acme",
            type=TransactionType.BUY,
            trade_date=date(2023, 1, 15),
            quantity=Decimal("50"),
            price=Decimal("140"),
        ),
        BuyTransaction(
            id="t2",
            portfolio_id="p1",
            asset_id="asset-acme",
            type=TransactionType.BUY,
            trade_date=date(2023, 6, 20),
            quantity=Decimal("50"),
            price=Decimal("160"),
        ),
    ]


@pytest.fixture
def sell_60() -> SellTransaction:
    return SellTransaction(
        id="t3",
        portfolio_id="p1",
        asset_id="asset-acme",
        type=TransactionType.SELL,
        trade_date=date(2024, 3, 1),
        quantity=Decimal("60"),
        price=Decimal("180"),
    )
