"""Custom exceptions for lotledger."""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for lot accounting and validation errors."""


class InvalidOwnershipPercentageError(LedgerError):
    """Raised when an ownership percentage falls outside [0, 100]."""

    def __init__(self, percentage: Decimal):
        self.percentage = percentage
        super().__init__(
            f"Ownership percentage must be between 0 and 100, got {percentage}"
        )


class NegativeAmountError(LedgerError):
    """Raised when a price, quantity, or fee is negative where it must not be."""

    def __init__(self, field: str, value: Decimal):
        self.field = field
        self.value = value
        super().__init__(f"'{field}' cannot be negative: {value}")


class InsufficientQuantityError(LedgerError):
    """Raised when a sale requests more than the available lot quantity."""

    def __init__(self, requested: Decimal, available: Decimal, lot_id: str | None = None):
        self.requested = requested
        self.available = available
        self.lot_id = lot_id
        scope = f"lot {lot_id}" if lot_id else "holding"
        super().__init__(
            f"Insufficient quantity in {scope}: "
            f"requested={requested}, available={available}"
        )


class InvalidWithholdingError(LedgerError):
    """Raised when RSU shares withheld exceed the gross shares vested."""

    def __init__(self, shares_withheld: Decimal, gross_shares: Decimal):
        self.shares_withheld = shares_withheld
        self.gross_shares = gross_shares
        super().__init__(
            f"Shares withheld ({shares_withheld}) exceed gross shares vested ({gross_shares})"
        )


class InvalidDispositionDatesError(LedgerError):
    """Raised when ESPP grant, purchase, and sale dates are out of order."""

    def __init__(self, message: str):
        super().__init__(f"Invalid ESPP dates: {message}")


class AssetNotFoundError(LedgerError):
    """Raised when an asset identifier does not resolve."""

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class HoldingNotFoundError(LedgerError):
    """Raised when a holding identifier does not resolve."""

    def __init__(self, holding_id: str):
        self.holding_id = holding_id
        super().__init__(f"Holding not found: {holding_id}")


class UnsupportedValuationMethodError(LedgerError):
    """Raised when an operation does not match the asset's valuation method."""

    def __init__(self, asset_id: str, valuation_method: str, operation: str):
        self.asset_id = asset_id
        self.valuation_method = valuation_method
        self.operation = operation
        super().__init__(
            f"Cannot {operation} for asset {asset_id} "
            f"with valuation method {valuation_method}"
        )


class LotNotFoundError(LedgerError):
    """Raised when a specific-lot selection references a lot that doesn't exist."""

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(f"Lot not found: {lot_id}")


class LotSelectionMismatchError(LedgerError):
    """Raised when a specific-lot selection does not add up to the sale quantity."""

    def __init__(self, selected: Decimal, requested: Decimal):
        self.selected = selected
        self.requested = requested
        super().__init__(
            f"Specific lot selection totals {selected}, sale quantity is {requested}"
        )


class DataValidationError(LedgerError):
    """Raised when input data fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")
