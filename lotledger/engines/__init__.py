"""Lot accounting and tax exposure engines."""

from lotledger.engines.espp import ESPPEngine
from lotledger.engines.estimator import TaxExposureEstimator
from lotledger.engines.lot_matcher import LotMatcher
from lotledger.engines.recommendations import RecommendationEngine
from lotledger.engines.rsu import RSUEngine

__all__ = [
    "ESPPEngine",
    "LotMatcher",
    "RecommendationEngine",
    "RSUEngine",
    "TaxExposureEstimator",
]
