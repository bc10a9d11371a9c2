"""Unrealized tax exposure estimator and aging-lot detector.

Walks every open lot once and produces:
  - short/long-term gain and loss buckets (losses stored as negative numbers)
  - an estimated liability on net gains only:
        max(net_st, 0) x (st_rate + state_rate) + max(net_lt, 0) x (lt_rate + state_rate)
  - lots that will turn long-term within the lookback window

Net losses never produce a negative liability and are not offset across the
short/long boundary.
"""

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from lotledger.engines.holding_period import classify, holding_days
from lotledger.engines.property import calculate_net_value
from lotledger.engines.thresholds import (
    DEFAULT_AGING_WINDOW_DAYS,
    HUNDRED,
    LONG_TERM_THRESHOLD_DAYS,
    ZERO,
)
from lotledger.models.enums import HoldingPeriod, LotType
from lotledger.models.portfolio import Asset, Holding, TaxLot
from lotledger.models.reports import (
    AgingLot,
    LotAnalysis,
    TaxExposureMetrics,
    TaxExposureReport,
)
from lotledger.models.settings import TaxSettings

logger = logging.getLogger(__name__)


class TaxExposureEstimator:
    """Estimates unrealized capital gains exposure across holdings."""

    def __init__(self) -> None:
        self.warnings: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(
        self,
        holdings: list[Holding],
        current_prices: Mapping[str, Decimal] | None,
        tax_settings: TaxSettings,
        assets: list[Asset] | Mapping[str, Asset] | None = None,
        as_of: date | None = None,
        window_days: int | None = None,
    ) -> TaxExposureReport:
        """Single pass over all open lots: buckets, lot detail, and aging lots.

        Args:
            holdings: Holdings with their lots.
            current_prices: Asset id (or symbol) -> price. Missing entries fall
                back to the asset's stored price, then to the holding's stored
                current value.
            tax_settings: Rates and the aging-lot lookback window.
            assets: Assets for symbol lookup and price fallback.
            as_of: Reference date for holding periods (defaults to today).
            window_days: Aging window; defaults to ``tax_settings.lookback_days``.
        """
        self.warnings = []
        as_of = as_of or date.today()
        prices = current_prices or {}
        asset_map = _asset_map(assets)
        window = tax_settings.lookback_days if window_days is None else window_days

        st_gains = ZERO
        st_losses = ZERO
        lt_gains = ZERO
        lt_losses = ZERO
        lots: list[LotAnalysis] = []
        aging: list[AgingLot] = []

        for holding in holdings:
            asset = asset_map.get(holding.asset_id)
            symbol = asset.symbol if asset else holding.asset_id
            price = self._resolve_price(holding, asset, prices)

            for lot in holding.lots:
                if lot.is_exhausted:
                    continue

                analysis = self._analyze_lot(holding, lot, symbol, price, as_of)
                lots.append(analysis)

                gain = analysis.unrealized_gain
                if analysis.holding_period == HoldingPeriod.LONG:
                    if gain > 0:
                        lt_gains += gain
                    else:
                        lt_losses += gain
                else:
                    if gain > 0:
                        st_gains += gain
                    else:
                        st_losses += gain
                    remaining = LONG_TERM_THRESHOLD_DAYS - analysis.holding_days
                    if 0 <= remaining <= window:
                        aging.append(self._aging_lot(analysis, remaining, price))

        aging.sort(key=lambda a: a.days_until_long_term)
        metrics = self._metrics(st_gains, st_losses, lt_gains, lt_losses, tax_settings)
        metrics.aging_lots_count = len(aging)

        return TaxExposureReport(
            as_of=as_of,
            metrics=metrics,
            lots=lots,
            aging_lots=aging,
            warnings=list(self.warnings),
        )

    def estimate(
        self,
        holdings: list[Holding],
        current_prices: Mapping[str, Decimal] | None,
        tax_settings: TaxSettings,
        assets: list[Asset] | Mapping[str, Asset] | None = None,
        as_of: date | None = None,
    ) -> TaxExposureMetrics:
        """Exposure metrics only."""
        return self.analyze(holdings, current_prices, tax_settings, assets, as_of).metrics

    def detect_aging_lots(
        self,
        holdings: list[Holding],
        assets: list[Asset] | Mapping[str, Asset] | None,
        window_days: int = DEFAULT_AGING_WINDOW_DAYS,
        current_prices: Mapping[str, Decimal] | None = None,
        as_of: date | None = None,
    ) -> list[AgingLot]:
        """Short-term lots that turn long-term within *window_days*, soonest first."""
        return self.analyze(
            holdings,
            current_prices,
            TaxSettings(),
            assets,
            as_of,
            window_days=window_days,
        ).aging_lots

    def estimate_for_holding(
        self,
        holding: Holding,
        current_price: Decimal,
        tax_settings: TaxSettings,
        asset: Asset | None = None,
        as_of: date | None = None,
    ) -> TaxExposureMetrics:
        """Exposure for a single holding at an explicit price."""
        return self.estimate(
            [holding],
            {holding.asset_id: current_price},
            tax_settings,
            [asset] if asset else None,
            as_of,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_price(
        self,
        holding: Holding,
        asset: Asset | None,
        prices: Mapping[str, Decimal],
    ) -> Decimal | None:
        price = prices.get(holding.asset_id)
        if price is None and asset is not None:
            price = prices.get(asset.symbol)
            if price is None:
                price = asset.current_price
        if price is None:
            message = (
                f"No price for {asset.symbol if asset else holding.asset_id}; "
                "using stored holding value"
            )
            logger.debug(message)
            self.warnings.append(message)
        return price

    @staticmethod
    def _analyze_lot(
        holding: Holding,
        lot: TaxLot,
        symbol: str,
        price: Decimal | None,
        as_of: date,
    ) -> LotAnalysis:
        quantity = lot.remaining_quantity
        cost_basis = lot.cost_basis

        if price is not None:
            current_value = calculate_net_value(quantity * price, holding.ownership_percentage)
        else:
            held = holding.quantity or holding.remaining_quantity
            current_value = holding.current_value * quantity / held if held else ZERO

        adjusted = None
        if lot.lot_type == LotType.ESPP and lot.bargain_element is not None:
            adjusted = cost_basis + lot.bargain_element * quantity

        return LotAnalysis(
            holding_id=holding.id,
            asset_id=holding.asset_id,
            asset_symbol=symbol,
            lot_id=lot.id,
            lot_type=lot.lot_type,
            purchase_date=lot.purchase_date,
            quantity=quantity,
            cost_basis=cost_basis,
            current_value=current_value,
            unrealized_gain=current_value - cost_basis,
            holding_days=holding_days(lot.purchase_date, as_of),
            holding_period=classify(lot.purchase_date, as_of),
            priced=price is not None,
            grant_date=lot.grant_date,
            bargain_element=lot.bargain_element,
            adjusted_cost_basis=adjusted,
        )

    @staticmethod
    def _aging_lot(analysis: LotAnalysis, remaining: int, price: Decimal | None) -> AgingLot:
        cost = analysis.cost_basis
        return AgingLot(
            holding_id=analysis.holding_id,
            asset_id=analysis.asset_id,
            asset_symbol=analysis.asset_symbol,
            lot_id=analysis.lot_id,
            remaining_quantity=analysis.quantity,
            purchase_date=analysis.purchase_date,
            days_until_long_term=remaining,
            current_price=price,
            current_value=analysis.current_value,
            unrealized_gain=analysis.unrealized_gain,
            unrealized_gain_percent=analysis.unrealized_gain / cost * HUNDRED if cost else ZERO,
        )

    @staticmethod
    def _metrics(
        st_gains: Decimal,
        st_losses: Decimal,
        lt_gains: Decimal,
        lt_losses: Decimal,
        settings: TaxSettings,
    ) -> TaxExposureMetrics:
        net_st = st_gains + st_losses
        net_lt = lt_gains + lt_losses
        total = net_st + net_lt

        # --- Liability on net gains only ---
        liability = (
            max(net_st, ZERO) * (settings.short_term_rate + settings.state_rate)
            + max(net_lt, ZERO) * (settings.long_term_rate + settings.state_rate)
        )
        effective_rate = liability / total if total > 0 else ZERO

        return TaxExposureMetrics(
            short_term_gains=st_gains,
            short_term_losses=st_losses,
            long_term_gains=lt_gains,
            long_term_losses=lt_losses,
            net_short_term=net_st,
            net_long_term=net_lt,
            total_unrealized_gain=total,
            estimated_liability=liability,
            effective_rate=effective_rate,
        )


def _asset_map(assets: list[Asset] | Mapping[str, Asset] | None) -> dict[str, Asset]:
    if assets is None:
        return {}
    if isinstance(assets, Mapping):
        return dict(assets)
    return {asset.id: asset for asset in assets}
