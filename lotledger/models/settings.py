"""User-configurable tax settings and recommendation thresholds."""

import json
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field

from lotledger.models.enums import CostBasisMethod


class TaxSettings(BaseModel):
    short_term_rate: Decimal = Field(default=Decimal("0.24"), ge=0, le=1)
    long_term_rate: Decimal = Field(default=Decimal("0.15"), ge=0, le=1)
    state_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    lookback_days: int = Field(default=30, ge=0)
    cost_basis_method: CostBasisMethod = CostBasisMethod.FIFO


class RecommendationThresholds(BaseModel):
    cash_drag_percent: Decimal = Decimal("20")
    concentration_percent: Decimal = Decimal("15")
    region_concentration_percent: Decimal = Decimal("80")
    sector_concentration_percent: Decimal = Decimal("50")
    aging_window_days: int = Field(default=30, ge=0)


class Settings(BaseModel):
    """Settings file contents: ``{"tax": {...}, "thresholds": {...}}``."""

    tax: TaxSettings = Field(default_factory=TaxSettings)
    thresholds: RecommendationThresholds = Field(default_factory=RecommendationThresholds)

    @classmethod
    def load(cls, path: Path | None) -> "Settings":
        """Load settings from a JSON file, falling back to defaults."""
        if path is None or not path.exists():
            return cls()
        return cls.model_validate(json.loads(path.read_text()))
