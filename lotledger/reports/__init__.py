"""Report generation for lotledger."""

from lotledger.reports.tax_exposure import TaxExposureReportGenerator

__all__ = ["TaxExposureReportGenerator"]
