"""Fixed tax-rule constants.

US federal rules; there is no per-jurisdiction configuration.
  - Long-term capital gains: held at least 365 calendar days
  - ESPP qualifying disposition (IRC Section 423): 2 years from grant AND
    1 year from purchase
"""

from decimal import Decimal

LONG_TERM_THRESHOLD_DAYS = 365

ESPP_GRANT_HOLDING_YEARS = 2
ESPP_PURCHASE_HOLDING_YEARS = 1

DEFAULT_AGING_WINDOW_DAYS = 30

FULL_OWNERSHIP = Decimal("100")
MONTHS_PER_YEAR = 12

ZERO = Decimal("0")
HUNDRED = Decimal("100")
