"""Core asset, tax lot, and holding models."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from lotledger.models.enums import AssetType, LotType, ValuationMethod


class RentalInfo(BaseModel):
    is_rental: bool = False
    monthly_rent: Decimal = Decimal("0")
    address: str | None = None
    notes: str | None = None


class Asset(BaseModel):
    id: str
    symbol: str
    name: str
    type: AssetType
    currency: str = "USD"
    current_price: Decimal | None = None
    price_updated_at: date | None = None
    valuation_method: ValuationMethod = ValuationMethod.AUTO
    rental_info: RentalInfo | None = None
    region: str | None = None
    sector: str | None = None


class TaxLot(BaseModel):
    id: str
    quantity: Decimal = Field(ge=0)
    purchase_price: Decimal
    purchase_date: date
    sold_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    remaining_quantity: Decimal = Field(ge=0)
    lot_type: LotType = LotType.STANDARD
    grant_date: date | None = None
    vesting_date: date | None = None
    discount_percent: Decimal | None = None
    market_price_at_purchase: Decimal | None = None
    bargain_element: Decimal | None = None  # per share
    shares_withheld: Decimal | None = None
    total_cost: Decimal | None = Field(default=None, ge=0)  # set by splits
    notes: str | None = None

    @model_validator(mode="after")
    def _check_quantities(self) -> "TaxLot":
        if self.remaining_quantity > self.quantity:
            raise ValueError(
                f"lot {self.id}: remaining {self.remaining_quantity} exceeds quantity {self.quantity}"
            )
        if self.remaining_quantity != self.quantity - self.sold_quantity:
            raise ValueError(
                f"lot {self.id}: remaining {self.remaining_quantity} != "
                f"quantity {self.quantity} - sold {self.sold_quantity}"
            )
        return self

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity <= 0

    @property
    def cost_basis(self) -> Decimal:
        """Cost basis of the remaining quantity."""
        return self.cost_of(self.remaining_quantity)

    def cost_of(self, units: Decimal) -> Decimal:
        """Cost of *units* from this lot.

        After a split the per-unit price may not be exactly representable,
        so the lot's total cost is pro-rated instead.
        """
        if self.total_cost is None or not self.quantity:
            return units * self.purchase_price
        return self.total_cost * units / self.quantity


class Holding(BaseModel):
    id: str
    portfolio_id: str
    asset_id: str
    quantity: Decimal = Decimal("0")
    cost_basis: Decimal = Decimal("0")
    average_cost: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    unrealized_gain: Decimal = Decimal("0")
    unrealized_gain_percent: Decimal = Decimal("0")
    ownership_percentage: Decimal = Decimal("100")
    lots: list[TaxLot] = Field(default_factory=list)
    last_updated: datetime | None = None

    @property
    def open_lots(self) -> list[TaxLot]:
        return [lot for lot in self.lots if not lot.is_exhausted]

    @property
    def remaining_quantity(self) -> Decimal:
        return sum((lot.remaining_quantity for lot in self.lots), Decimal("0"))
