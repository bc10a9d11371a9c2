"""Unrealized tax exposure report generator."""

from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from lotledger.models.reports import Recommendation, TaxExposureReport

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _money(value: Decimal | None) -> str:
    if value is None:
        return "n/a"
    return f"${value:,.2f}"


def _percent(value: Decimal) -> str:
    return f"{value * 100:.1f}%"


class TaxExposureReportGenerator:
    """Generates a human-readable tax exposure report."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))
        self.env.filters["money"] = _money
        self.env.filters["pct"] = _percent

    def render(
        self,
        report: TaxExposureReport,
        recommendations: list[Recommendation] | None = None,
    ) -> str:
        """Render exposure metrics, aging lots, and recommendations."""
        template = self.env.get_template("tax_exposure.txt")
        return template.render(
            report=report,
            metrics=report.metrics,
            recommendations=recommendations or [],
        )
