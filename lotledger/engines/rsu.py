"""RSU vest engine: net shares after tax withholding."""

from decimal import Decimal

from lotledger.exceptions import InvalidWithholdingError, NegativeAmountError
from lotledger.models.reports import RSUVestResult


class RSUEngine:
    """Computes the shares and basis an RSU vest actually delivers."""

    def compute_vest(
        self, gross_shares: Decimal, shares_withheld: Decimal, fmv: Decimal
    ) -> RSUVestResult:
        """Net shares = gross - withheld; basis per share is the vest-date FMV.

        There is no purchase price for an RSU, so the FMV that was taxed as
        wages becomes the cost basis.
        """
        self.validate(gross_shares, shares_withheld, fmv)
        net_shares = gross_shares - shares_withheld
        return RSUVestResult(
            gross_shares=gross_shares,
            shares_withheld=shares_withheld,
            net_shares=net_shares,
            cost_basis_per_share=fmv,
            total_cost_basis=net_shares * fmv,
            withheld_value=shares_withheld * fmv,
        )

    @staticmethod
    def validate(gross_shares: Decimal, shares_withheld: Decimal, fmv: Decimal) -> None:
        for field, value in (
            ("gross_shares", gross_shares),
            ("shares_withheld", shares_withheld),
            ("price", fmv),
        ):
            if value < 0:
                raise NegativeAmountError(field, value)
        if shares_withheld > gross_shares:
            raise InvalidWithholdingError(shares_withheld, gross_shares)
