"""Derived output models consumed by the UI and reports."""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from lotledger.models.enums import (
    DispositionReason,
    DispositionType,
    HoldingPeriod,
    LotType,
    RecommendationType,
    Severity,
)
from lotledger.models.portfolio import Holding, TaxLot


class SaleAllocation(BaseModel):
    """One lot's share of a sale."""

    lot_id: str
    quantity: Decimal
    purchase_price: Decimal
    purchase_date: date
    sale_price: Decimal
    sale_date: date
    cost_basis: Decimal
    proceeds: Decimal
    realized_gain: Decimal
    holding_period: HoldingPeriod


class LedgerUpdate(BaseModel):
    """Result of applying one transaction to a holding."""

    holding: Holding
    allocations: list[SaleAllocation] = Field(default_factory=list)
    lot: TaxLot | None = None

    @property
    def realized_gain(self) -> Decimal:
        return sum((a.realized_gain for a in self.allocations), Decimal("0"))


class LotAnalysis(BaseModel):
    holding_id: str
    asset_id: str
    asset_symbol: str
    lot_id: str
    lot_type: LotType
    purchase_date: date
    quantity: Decimal
    cost_basis: Decimal
    current_value: Decimal
    unrealized_gain: Decimal
    holding_days: int
    holding_period: HoldingPeriod
    priced: bool = True
    grant_date: date | None = None
    bargain_element: Decimal | None = None
    adjusted_cost_basis: Decimal | None = None


class TaxExposureMetrics(BaseModel):
    """Unrealized gain buckets and liability estimate.

    Losses are negative numbers: ``net_short_term = short_term_gains + short_term_losses``.
    """

    short_term_gains: Decimal = Decimal("0")
    short_term_losses: Decimal = Decimal("0")
    long_term_gains: Decimal = Decimal("0")
    long_term_losses: Decimal = Decimal("0")
    net_short_term: Decimal = Decimal("0")
    net_long_term: Decimal = Decimal("0")
    total_unrealized_gain: Decimal = Decimal("0")
    estimated_liability: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    aging_lots_count: int = 0


class AgingLot(BaseModel):
    holding_id: str
    asset_id: str
    asset_symbol: str
    lot_id: str
    remaining_quantity: Decimal
    purchase_date: date
    days_until_long_term: int
    current_price: Decimal | None = None
    current_value: Decimal
    unrealized_gain: Decimal
    unrealized_gain_percent: Decimal
    holding_period: HoldingPeriod = HoldingPeriod.SHORT


class TaxExposureReport(BaseModel):
    """Everything one pass over the lots produces."""

    as_of: date
    metrics: TaxExposureMetrics
    lots: list[LotAnalysis] = Field(default_factory=list)
    aging_lots: list[AgingLot] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DispositionCheck(BaseModel):
    grant_date: date
    purchase_date: date
    sale_date: date
    two_years_from_grant: date
    one_year_from_purchase: date
    meets_grant_requirement: bool
    meets_purchase_requirement: bool
    disposition_type: DispositionType
    reason: DispositionReason
    days_until_grant_requirement: int
    days_until_purchase_requirement: int

    @property
    def is_qualifying(self) -> bool:
        return self.disposition_type == DispositionType.QUALIFYING


class ESPPDispositionResult(BaseModel):
    lot_id: str
    check: DispositionCheck
    quantity: Decimal
    bargain_element: Decimal
    total_bargain_element: Decimal
    ordinary_income: Decimal | None = None


class RSUVestResult(BaseModel):
    gross_shares: Decimal
    shares_withheld: Decimal
    net_shares: Decimal
    cost_basis_per_share: Decimal
    total_cost_basis: Decimal
    withheld_value: Decimal


class Recommendation(BaseModel):
    id: str
    type: RecommendationType
    title: str
    description: str
    severity: Severity
    action_steps: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
