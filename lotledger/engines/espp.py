"""ESPP disposition engine.

Implements qualifying vs. disqualifying disposition logic per IRC Section 423:
a disposition qualifies only when the shares are sold on or after BOTH
2 years from the grant (offering) date and 1 year from the purchase date.
"""

from datetime import date
from decimal import Decimal

from lotledger.engines.thresholds import (
    ESPP_GRANT_HOLDING_YEARS,
    ESPP_PURCHASE_HOLDING_YEARS,
    ZERO,
)
from lotledger.exceptions import (
    DataValidationError,
    InvalidDispositionDatesError,
    NegativeAmountError,
)
from lotledger.models.enums import DispositionReason, DispositionType, LotType
from lotledger.models.portfolio import TaxLot
from lotledger.models.reports import DispositionCheck, ESPPDispositionResult


class ESPPEngine:
    """Classifies ESPP dispositions and computes the bargain element."""

    def check_disposition(
        self, grant_date: date, purchase_date: date, sale_date: date
    ) -> DispositionCheck:
        """Check a (hypothetical or actual) sale against both holding windows."""
        self.validate_dates(grant_date, purchase_date)
        if sale_date < purchase_date:
            raise InvalidDispositionDatesError(
                f"sale date {sale_date} is before purchase date {purchase_date}"
            )

        two_years_from_grant = self._add_years(grant_date, ESPP_GRANT_HOLDING_YEARS)
        one_year_from_purchase = self._add_years(purchase_date, ESPP_PURCHASE_HOLDING_YEARS)

        meets_grant = sale_date >= two_years_from_grant
        meets_purchase = sale_date >= one_year_from_purchase

        if meets_grant and meets_purchase:
            disposition = DispositionType.QUALIFYING
            reason = DispositionReason.QUALIFYING
        else:
            disposition = DispositionType.DISQUALIFYING
            if not meets_grant and not meets_purchase:
                reason = DispositionReason.BOTH_REQUIREMENTS_NOT_MET
            elif not meets_grant:
                reason = DispositionReason.SOLD_BEFORE_2YR_FROM_GRANT
            else:
                reason = DispositionReason.SOLD_BEFORE_1YR_FROM_PURCHASE

        return DispositionCheck(
            grant_date=grant_date,
            purchase_date=purchase_date,
            sale_date=sale_date,
            two_years_from_grant=two_years_from_grant,
            one_year_from_purchase=one_year_from_purchase,
            meets_grant_requirement=meets_grant,
            meets_purchase_requirement=meets_purchase,
            disposition_type=disposition,
            reason=reason,
            days_until_grant_requirement=max((two_years_from_grant - sale_date).days, 0),
            days_until_purchase_requirement=max((one_year_from_purchase - sale_date).days, 0),
        )

    @staticmethod
    def validate_dates(grant_date: date, purchase_date: date) -> None:
        if grant_date >= purchase_date:
            raise InvalidDispositionDatesError(
                f"grant date {grant_date} must be before purchase date {purchase_date}"
            )

    @staticmethod
    def bargain_element(market_price: Decimal, purchase_price: Decimal) -> Decimal:
        """Per-share discount: market price at purchase minus price paid."""
        if market_price < 0:
            raise NegativeAmountError("market_price", market_price)
        if purchase_price < 0:
            raise NegativeAmountError("purchase_price", purchase_price)
        return market_price - purchase_price

    def total_bargain_element(
        self, market_price: Decimal, purchase_price: Decimal, quantity: Decimal
    ) -> Decimal:
        if quantity < 0:
            raise NegativeAmountError("quantity", quantity)
        return self.bargain_element(market_price, purchase_price) * quantity

    def evaluate_lot(
        self,
        lot: TaxLot,
        sale_date: date,
        sale_price: Decimal | None = None,
        quantity: Decimal | None = None,
    ) -> ESPPDispositionResult:
        """Evaluate selling (part of) an ESPP lot on *sale_date*.

        Ordinary income follows Pub. 525: a disqualifying disposition taxes the
        full bargain element as ordinary income; a qualifying one taxes the
        lesser of the bargain element and the actual gain (never below zero).
        Without a sale price, qualifying ordinary income is left unset.
        """
        if lot.lot_type != LotType.ESPP or lot.grant_date is None:
            raise DataValidationError("lot_type", f"lot {lot.id} is not an ESPP lot with a grant date")

        quantity = lot.remaining_quantity if quantity is None else quantity
        check = self.check_disposition(lot.grant_date, lot.purchase_date, sale_date)

        if lot.bargain_element is not None:
            per_share = lot.bargain_element
        elif lot.market_price_at_purchase is not None:
            per_share = self.bargain_element(lot.market_price_at_purchase, lot.purchase_price)
        else:
            per_share = ZERO

        ordinary_income: Decimal | None
        if check.disposition_type == DispositionType.DISQUALIFYING:
            ordinary_income = per_share * quantity
        elif sale_price is not None:
            actual_gain = sale_price - lot.purchase_price
            ordinary_income = max(min(actual_gain, per_share), ZERO) * quantity
        else:
            ordinary_income = None

        return ESPPDispositionResult(
            lot_id=lot.id,
            check=check,
            quantity=quantity,
            bargain_element=per_share,
            total_bargain_element=per_share * quantity,
            ordinary_income=ordinary_income,
        )

    @staticmethod
    def _add_years(d: date, years: int) -> date:
        try:
            return d.replace(year=d.year + years)
        except ValueError:
            return d.replace(year=d.year + years, day=28)
