"""Partial-ownership valuation, rental yield, and manual price updates.

Real estate and other manually valued assets are tracked as whole-asset
prices; a holding's share of that price is scaled by its ownership
percentage.
"""

from datetime import date, datetime, time
from decimal import Decimal

from lotledger.engines.thresholds import FULL_OWNERSHIP, HUNDRED, MONTHS_PER_YEAR, ZERO
from lotledger.exceptions import (
    DataValidationError,
    InvalidOwnershipPercentageError,
    NegativeAmountError,
    UnsupportedValuationMethodError,
)
from lotledger.models.enums import AssetType, TransactionType, ValuationMethod
from lotledger.models.portfolio import Asset, Holding, RentalInfo, TaxLot
from lotledger.models.transactions import BuyTransaction


def calculate_net_value(
    value: Decimal, ownership_percentage: Decimal = FULL_OWNERSHIP
) -> Decimal:
    """Owner's share of *value*; the percentage must lie in [0, 100]."""
    ownership_percentage = Decimal(ownership_percentage)
    if ownership_percentage < 0 or ownership_percentage > HUNDRED:
        raise InvalidOwnershipPercentageError(ownership_percentage)
    return value * ownership_percentage / HUNDRED


def calculate_yield(monthly_rent: Decimal, current_value: Decimal) -> Decimal | None:
    """Annual rental yield in percent: (rent x 12) / value x 100.

    Returns None when the value is zero; the yield is undefined there.
    """
    if current_value == 0:
        return None
    return monthly_rent * MONTHS_PER_YEAR / current_value * HUNDRED


def asset_annual_yield(asset: Asset) -> Decimal | None:
    info = asset.rental_info
    if info is None or not info.is_rental or not info.monthly_rent:
        return None
    if not asset.current_price:
        return None
    return calculate_yield(info.monthly_rent, asset.current_price)


def add_property(
    asset_id: str,
    holding_id: str,
    transaction_id: str,
    portfolio_id: str,
    name: str,
    purchase_price: Decimal,
    current_value: Decimal,
    purchase_date: date,
    ownership_percentage: Decimal = FULL_OWNERSHIP,
    monthly_rent: Decimal | None = None,
    address: str | None = None,
    region: str | None = None,
    currency: str = "USD",
) -> tuple[Asset, Holding, BuyTransaction]:
    """Build the manually valued asset, holding, and opening buy for a property.

    The single lot carries the owner's share of the purchase price, so the
    holding's cost basis and value are both net of ownership.
    """
    for field, value in (
        ("purchase_price", purchase_price),
        ("current_value", current_value),
        ("monthly_rent", monthly_rent or ZERO),
    ):
        if value < 0:
            raise NegativeAmountError(field, value)

    net_purchase = calculate_net_value(purchase_price, ownership_percentage)
    net_value = calculate_net_value(current_value, ownership_percentage)

    rental_info = None
    if monthly_rent:
        rental_info = RentalInfo(is_rental=True, monthly_rent=monthly_rent, address=address)

    asset = Asset(
        id=asset_id,
        symbol=_property_symbol(name),
        name=name,
        type=AssetType.REAL_ESTATE,
        currency=currency,
        current_price=current_value,
        price_updated_at=purchase_date,
        valuation_method=ValuationMethod.MANUAL,
        rental_info=rental_info,
        region=region,
    )
    unrealized_gain = net_value - net_purchase
    holding = Holding(
        id=holding_id,
        portfolio_id=portfolio_id,
        asset_id=asset_id,
        quantity=Decimal("1"),
        cost_basis=net_purchase,
        average_cost=net_purchase,
        current_value=net_value,
        unrealized_gain=unrealized_gain,
        unrealized_gain_percent=unrealized_gain / net_purchase * HUNDRED if net_purchase else ZERO,
        ownership_percentage=ownership_percentage,
        lots=[
            TaxLot(
                id=f"lot-{transaction_id}",
                quantity=Decimal("1"),
                purchase_price=net_purchase,
                purchase_date=purchase_date,
                remaining_quantity=Decimal("1"),
            )
        ],
        last_updated=datetime.combine(purchase_date, time.min),
    )
    transaction = BuyTransaction(
        id=transaction_id,
        portfolio_id=portfolio_id,
        asset_id=asset_id,
        type=TransactionType.BUY,
        trade_date=purchase_date,
        quantity=Decimal("1"),
        price=net_purchase,
        notes=f"Initial property acquisition: {ownership_percentage}% ownership",
    )
    return asset, holding, transaction


def update_manual_price(
    asset: Asset,
    holdings: list[Holding],
    new_price: Decimal,
    as_of: date | None = None,
) -> tuple[Asset, list[Holding]]:
    """Set a new user-entered price on a MANUAL asset and re-value its holdings."""
    if asset.valuation_method != ValuationMethod.MANUAL:
        raise UnsupportedValuationMethodError(
            asset.id, asset.valuation_method, "update manual price"
        )
    return _reprice(asset, holdings, new_price, as_of)


def apply_price_refresh(
    asset: Asset,
    holdings: list[Holding],
    new_price: Decimal,
    as_of: date | None = None,
) -> tuple[Asset, list[Holding]]:
    """Apply an externally fetched price to an AUTO asset."""
    if asset.valuation_method != ValuationMethod.AUTO:
        raise UnsupportedValuationMethodError(
            asset.id, asset.valuation_method, "apply a price refresh"
        )
    return _reprice(asset, holdings, new_price, as_of)


def update_rental_info(asset: Asset, **changes) -> Asset:
    """Merge *changes* into the asset's rental info (real estate only)."""
    if asset.type != AssetType.REAL_ESTATE:
        raise DataValidationError(
            "type", f"rental info only applies to real estate, asset {asset.id} is {asset.type}"
        )
    monthly_rent = changes.get("monthly_rent")
    if monthly_rent is not None and monthly_rent < 0:
        raise NegativeAmountError("monthly_rent", monthly_rent)
    current = asset.rental_info or RentalInfo()
    return asset.model_copy(update={"rental_info": current.model_copy(update=changes)})


def _reprice(
    asset: Asset, holdings: list[Holding], new_price: Decimal, as_of: date | None
) -> tuple[Asset, list[Holding]]:
    if new_price < 0:
        raise NegativeAmountError("price", new_price)
    as_of = as_of or date.today()

    repriced: list[Holding] = []
    for holding in holdings:
        if holding.asset_id != asset.id:
            continue
        net_value = calculate_net_value(holding.quantity * new_price, holding.ownership_percentage)
        gain = net_value - holding.cost_basis
        repriced.append(holding.model_copy(update={
            "current_value": net_value,
            "unrealized_gain": gain,
            "unrealized_gain_percent": gain / holding.cost_basis * HUNDRED if holding.cost_basis else ZERO,
            "last_updated": datetime.combine(as_of, time.min),
        }))

    updated_asset = asset.model_copy(update={"current_price": new_price, "price_updated_at": as_of})
    return updated_asset, repriced


def _property_symbol(name: str) -> str:
    """Alphanumeric + underscore symbol derived from the property name."""
    cleaned = "".join(c for c in name.upper() if c.isalnum() or c.isspace())
    symbol = "_".join(cleaned.split())[:50]
    return symbol or "PROPERTY"
