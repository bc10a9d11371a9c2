"""Data models for lotledger."""

from lotledger.models.enums import (
    AssetType,
    CostBasisMethod,
    DispositionReason,
    DispositionType,
    HoldingPeriod,
    LotType,
    RecommendationType,
    Severity,
    TransactionType,
    ValuationMethod,
)
from lotledger.models.portfolio import Asset, Holding, RentalInfo, TaxLot
from lotledger.models.reports import (
    AgingLot,
    DispositionCheck,
    ESPPDispositionResult,
    LedgerUpdate,
    LotAnalysis,
    Recommendation,
    RSUVestResult,
    SaleAllocation,
    TaxExposureMetrics,
    TaxExposureReport,
)
from lotledger.models.settings import RecommendationThresholds, Settings, TaxSettings
from lotledger.models.transactions import (
    TRANSACTION_ADAPTER,
    BuyTransaction,
    CashFlowTransaction,
    CorporateActionTransaction,
    EsppPurchaseTransaction,
    RsuVestTransaction,
    SellTransaction,
    SplitTransaction,
    Transaction,
)

__all__ = [
    "AgingLot",
    "Asset",
    "AssetType",
    "BuyTransaction",
    "CashFlowTransaction",
    "CorporateActionTransaction",
    "CostBasisMethod",
    "DispositionCheck",
    "DispositionReason",
    "DispositionType",
    "ESPPDispositionResult",
    "EsppPurchaseTransaction",
    "Holding",
    "HoldingPeriod",
    "LedgerUpdate",
    "LotAnalysis",
    "LotType",
    "Recommendation",
    "RecommendationThresholds",
    "RecommendationType",
    "RentalInfo",
    "RSUVestResult",
    "RsuVestTransaction",
    "SaleAllocation",
    "SellTransaction",
    "Settings",
    "Severity",
    "SplitTransaction",
    "TaxExposureMetrics",
    "TaxExposureReport",
    "TaxLot",
    "TaxSettings",
    "Transaction",
    "TRANSACTION_ADAPTER",
    "TransactionType",
    "ValuationMethod",
]
