"""Holding-period classification for tax lots.

A lot is long-term once it has been held for at least 365 calendar days
(not trading days); anything younger is short-term.
"""

from collections.abc import Iterable
from datetime import date, timedelta

from lotledger.engines.thresholds import LONG_TERM_THRESHOLD_DAYS
from lotledger.models.enums import HoldingPeriod
from lotledger.models.portfolio import TaxLot


def holding_days(purchase_date: date, reference_date: date | None = None) -> int:
    """Calendar days between purchase and reference date (negative if in the future)."""
    reference_date = reference_date or date.today()
    return (reference_date - purchase_date).days


def classify(purchase_date: date, reference_date: date | None = None) -> HoldingPeriod:
    """Classify a single purchase as short- or long-term as of *reference_date*."""
    if holding_days(purchase_date, reference_date) >= LONG_TERM_THRESHOLD_DAYS:
        return HoldingPeriod.LONG
    return HoldingPeriod.SHORT


def classify_mixed(
    lots: Iterable[TaxLot], reference_date: date | None = None
) -> HoldingPeriod:
    """Classify a group of lots: short, long, or mixed.

    Exhausted lots are ignored. An empty group is short by convention.
    """
    reference_date = reference_date or date.today()
    periods = {
        classify(lot.purchase_date, reference_date)
        for lot in lots
        if not lot.is_exhausted
    }
    if periods == {HoldingPeriod.LONG}:
        return HoldingPeriod.LONG
    if HoldingPeriod.LONG in periods:
        return HoldingPeriod.MIXED
    return HoldingPeriod.SHORT


def long_term_date(purchase_date: date) -> date:
    """First date on which a purchase classifies as long-term."""
    return purchase_date + timedelta(days=LONG_TERM_THRESHOLD_DAYS)


def days_until_long_term(purchase_date: date, reference_date: date | None = None) -> int:
    """Days left before long-term status; zero or negative once reached."""
    return LONG_TERM_THRESHOLD_DAYS - holding_days(purchase_date, reference_date)
