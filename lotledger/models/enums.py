"""Enumerations for lotledger."""

from enum import StrEnum


class AssetType(StrEnum):
    STOCK = "stock"
    ETF = "etf"
    CRYPTO = "crypto"
    BOND = "bond"
    REAL_ESTATE = "real_estate"
    COMMODITY = "commodity"
    CASH = "cash"
    OTHER = "other"


class ValuationMethod(StrEnum):
    AUTO = "AUTO"
    MANUAL = "MANUAL"


class TransactionType(StrEnum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    SPLIT = "split"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    FEE = "fee"
    TAX = "tax"
    SPINOFF = "spinoff"
    MERGER = "merger"
    REINVESTMENT = "reinvestment"
    ESPP_PURCHASE = "espp_purchase"
    RSU_VEST = "rsu_vest"


class LotType(StrEnum):
    STANDARD = "standard"
    ESPP = "espp"
    RSU = "rsu"


class HoldingPeriod(StrEnum):
    SHORT = "short"
    LONG = "long"
    MIXED = "mixed"


class CostBasisMethod(StrEnum):
    FIFO = "FIFO"
    LIFO = "LIFO"
    HIFO = "HIFO"
    SPECIFIC = "SPECIFIC"


class DispositionType(StrEnum):
    QUALIFYING = "QUALIFYING"
    DISQUALIFYING = "DISQUALIFYING"


class DispositionReason(StrEnum):
    QUALIFYING = "qualifying"
    SOLD_BEFORE_2YR_FROM_GRANT = "sold_before_2yr_from_grant"
    SOLD_BEFORE_1YR_FROM_PURCHASE = "sold_before_1yr_from_purchase"
    BOTH_REQUIREMENTS_NOT_MET = "both_requirements_not_met"


class RecommendationType(StrEnum):
    CASH_DRAG = "cash_drag"
    CONCENTRATION = "concentration"
    REGION_CONCENTRATION = "region_concentration"
    SECTOR_CONCENTRATION = "sector_concentration"
    TAX_OPTIMIZATION = "tax_optimization"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
