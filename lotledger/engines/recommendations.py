"""Portfolio recommendation engine.

Rules are evaluated independently; each one that fires adds a single
Recommendation (concentration may fire once per asset type):
  - cash_drag              cash share of the portfolio above threshold
  - concentration          a non-cash asset type above threshold
  - region_concentration   one region above threshold (unset region = "US")
  - sector_concentration   one sector above threshold (assets without a sector are skipped)
  - tax_optimization       short-term lots about to turn long-term
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from lotledger.engines.estimator import TaxExposureEstimator
from lotledger.engines.thresholds import HUNDRED, ZERO
from lotledger.exceptions import AssetNotFoundError
from lotledger.models.enums import AssetType, RecommendationType, Severity
from lotledger.models.portfolio import Asset, Holding
from lotledger.models.reports import AgingLot, Recommendation
from lotledger.models.settings import RecommendationThresholds

DEFAULT_REGION = "US"

# Severity bands: points over threshold for cash, multiples of threshold for concentration
_CASH_HIGH_MARGIN = Decimal("10")
_CASH_MEDIUM_MARGIN = Decimal("5")
_CONCENTRATION_HIGH_MULTIPLE = Decimal("4")
_CONCENTRATION_MEDIUM_MULTIPLE = Decimal("2")
_REGION_HIGH_PERCENT = Decimal("90")
_SECTOR_HIGH_PERCENT = Decimal("70")
_URGENT_AGING_DAYS = 7


class RecommendationEngine:
    """Generates actionable recommendations from holdings and lots."""

    def __init__(self, estimator: TaxExposureEstimator | None = None) -> None:
        self.estimator = estimator or TaxExposureEstimator()

    def generate(
        self,
        holdings: list[Holding],
        assets: list[Asset] | Mapping[str, Asset],
        total_value: Decimal,
        thresholds: RecommendationThresholds | None = None,
        current_prices: Mapping[str, Decimal] | None = None,
        as_of: date | None = None,
    ) -> list[Recommendation]:
        """Run every rule and return the recommendations that fired.

        Raises:
            AssetNotFoundError: a holding references an asset not in *assets*.
        """
        thresholds = thresholds or RecommendationThresholds()
        asset_map = assets if isinstance(assets, Mapping) else {a.id: a for a in assets}

        type_values: dict[AssetType, Decimal] = {}
        region_values: dict[str, Decimal] = {}
        sector_values: dict[str, Decimal] = {}
        for holding in holdings:
            asset = asset_map.get(holding.asset_id)
            if asset is None:
                raise AssetNotFoundError(holding.asset_id)
            type_values[asset.type] = type_values.get(asset.type, ZERO) + holding.current_value
            region = asset.region or DEFAULT_REGION
            region_values[region] = region_values.get(region, ZERO) + holding.current_value
            if asset.sector:
                sector_values[asset.sector] = (
                    sector_values.get(asset.sector, ZERO) + holding.current_value
                )

        recommendations: list[Recommendation] = []

        cash_drag = self._check_cash_drag(type_values, total_value, thresholds)
        if cash_drag:
            recommendations.append(cash_drag)

        recommendations.extend(
            self._check_concentration(type_values, total_value, thresholds)
        )

        region = self._check_region_concentration(region_values, total_value, thresholds)
        if region:
            recommendations.append(region)

        sector = self._check_sector_concentration(sector_values, total_value, thresholds)
        if sector:
            recommendations.append(sector)

        aging_lots = self.estimator.detect_aging_lots(
            holdings,
            asset_map,
            window_days=thresholds.aging_window_days,
            current_prices=current_prices,
            as_of=as_of,
        )
        if aging_lots:
            recommendations.append(self._tax_optimization(aging_lots, thresholds))

        return recommendations

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _check_cash_drag(
        self,
        type_values: dict[AssetType, Decimal],
        total_value: Decimal,
        thresholds: RecommendationThresholds,
    ) -> Recommendation | None:
        cash_percent = _percent(type_values.get(AssetType.CASH, ZERO), total_value)
        threshold = thresholds.cash_drag_percent
        if cash_percent <= threshold:
            return None

        over = cash_percent - threshold
        if over > _CASH_HIGH_MARGIN:
            severity = Severity.HIGH
        elif over > _CASH_MEDIUM_MARGIN:
            severity = Severity.MEDIUM
        else:
            severity = Severity.LOW

        return Recommendation(
            id="cash-drag",
            type=RecommendationType.CASH_DRAG,
            title="High Cash Allocation",
            description=(
                f"Your portfolio has {cash_percent:.1f}% in cash, which may be "
                "dragging down returns. Consider investing excess cash to improve "
                "long-term performance."
            ),
            severity=severity,
            action_steps=[
                f"Review cash holdings above the {threshold}% target",
                "Invest excess cash according to your target allocation",
            ],
            metadata={"cash_percent": cash_percent, "threshold": threshold},
        )

    def _check_concentration(
        self,
        type_values: dict[AssetType, Decimal],
        total_value: Decimal,
        thresholds: RecommendationThresholds,
    ) -> list[Recommendation]:
        threshold = thresholds.concentration_percent
        recommendations: list[Recommendation] = []

        for asset_type, value in type_values.items():
            if asset_type == AssetType.CASH:
                continue
            percent = _percent(value, total_value)
            if percent <= threshold:
                continue

            if percent > threshold * _CONCENTRATION_HIGH_MULTIPLE:
                severity = Severity.HIGH
            elif percent > threshold * _CONCENTRATION_MEDIUM_MULTIPLE:
                severity = Severity.MEDIUM
            else:
                severity = Severity.LOW

            recommendations.append(Recommendation(
                id=f"concentration-{asset_type}",
                type=RecommendationType.CONCENTRATION,
                title="Asset Type Concentration Risk",
                description=(
                    f"{percent:.1f}% of your portfolio is in {asset_type}. "
                    "Consider diversifying across different asset types to reduce risk."
                ),
                severity=severity,
                action_steps=[
                    f"Review {asset_type} holdings against your target allocation",
                    "Rebalance into under-weighted asset types",
                ],
                metadata={
                    "asset_type": asset_type,
                    "percent": percent,
                    "threshold": threshold,
                },
            ))

        return recommendations

    def _check_region_concentration(
        self,
        region_values: dict[str, Decimal],
        total_value: Decimal,
        thresholds: RecommendationThresholds,
    ) -> Recommendation | None:
        if not region_values:
            return None
        region, value = max(region_values.items(), key=lambda item: item[1])
        percent = _percent(value, total_value)
        threshold = thresholds.region_concentration_percent
        if percent <= threshold:
            return None

        return Recommendation(
            id="region-concentration",
            type=RecommendationType.REGION_CONCENTRATION,
            title="Geographic Concentration Risk",
            description=(
                f"Your portfolio is heavily concentrated in {region} ({percent:.1f}%). "
                "Consider adding international exposure for better diversification."
            ),
            severity=Severity.HIGH if percent > _REGION_HIGH_PERCENT else Severity.MEDIUM,
            action_steps=["Review regional breakdown", f"Add exposure outside {region}"],
            metadata={"region": region, "percent": percent, "threshold": threshold},
        )

    def _check_sector_concentration(
        self,
        sector_values: dict[str, Decimal],
        total_value: Decimal,
        thresholds: RecommendationThresholds,
    ) -> Recommendation | None:
        if not sector_values:
            return None
        sector, value = max(sector_values.items(), key=lambda item: item[1])
        percent = _percent(value, total_value)
        threshold = thresholds.sector_concentration_percent
        if percent <= threshold:
            return None

        return Recommendation(
            id="sector-concentration",
            type=RecommendationType.SECTOR_CONCENTRATION,
            title="Sector Concentration Risk",
            description=(
                f"Your portfolio is heavily concentrated in {sector} ({percent:.1f}%). "
                "Consider diversifying across different sectors."
            ),
            severity=Severity.HIGH if percent > _SECTOR_HIGH_PERCENT else Severity.MEDIUM,
            action_steps=["Review sector breakdown", f"Reduce exposure to {sector}"],
            metadata={"sector": sector, "percent": percent, "threshold": threshold},
        )

    def _tax_optimization(
        self, aging_lots: list[AgingLot], thresholds: RecommendationThresholds
    ) -> Recommendation:
        earliest = min(lot.days_until_long_term for lot in aging_lots)
        total_gain = sum((lot.unrealized_gain for lot in aging_lots), ZERO)
        symbols = sorted({lot.asset_symbol for lot in aging_lots})

        if total_gain <= 0:
            severity = Severity.LOW
        elif earliest <= _URGENT_AGING_DAYS:
            severity = Severity.HIGH
        else:
            severity = Severity.MEDIUM

        count = len(aging_lots)
        return Recommendation(
            id="aging-lots",
            type=RecommendationType.TAX_OPTIMIZATION,
            title="Lots Approaching Long-Term Status",
            description=(
                f"{count} lot{'s' if count != 1 else ''} will qualify for long-term "
                f"treatment within {thresholds.aging_window_days} days "
                f"(earliest in {earliest} days). Unrealized gain at stake: "
                f"${total_gain:,.2f}."
            ),
            severity=severity,
            action_steps=[
                f"Avoid selling {', '.join(symbols)} lots before they turn long-term",
                "Set a reminder for the earliest long-term date",
            ],
            metadata={
                "count": count,
                "earliest_days_remaining": earliest,
                "total_unrealized_gain": total_gain,
                "lot_ids": [lot.lot_id for lot in aging_lots],
            },
        )


def _percent(value: Decimal, total: Decimal) -> Decimal:
    if not total:
        return ZERO
    return value / total * HUNDRED
