"""Transaction records, modelled as a tagged union over the transaction type.

Each variant carries only the fields its type needs. The ``Transaction``
alias is a pydantic discriminated union, so raw dicts (from JSON or the
database) validate straight into the right variant via ``TRANSACTION_ADAPTER``.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from lotledger.models.enums import TransactionType


class _TransactionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    portfolio_id: str
    asset_id: str
    trade_date: date
    fees: Decimal = Decimal("0")
    notes: str | None = None


class BuyTransaction(_TransactionBase):
    type: Literal[
        TransactionType.BUY, TransactionType.TRANSFER_IN, TransactionType.REINVESTMENT
    ]
    quantity: Decimal
    price: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.price + self.fees


class SellTransaction(_TransactionBase):
    type: Literal[TransactionType.SELL, TransactionType.TRANSFER_OUT]
    quantity: Decimal
    price: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.price - self.fees


class EsppPurchaseTransaction(_TransactionBase):
    type: Literal[TransactionType.ESPP_PURCHASE]
    quantity: Decimal
    price: Decimal  # discounted price actually paid
    grant_date: date
    market_price_at_purchase: Decimal | None = None
    discount_percent: Decimal | None = None

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.price + self.fees


class RsuVestTransaction(_TransactionBase):
    type: Literal[TransactionType.RSU_VEST]
    gross_shares: Decimal
    shares_withheld: Decimal = Decimal("0")
    price: Decimal  # fair market value at vest
    grant_date: date | None = None

    @property
    def quantity(self) -> Decimal:
        return self.gross_shares - self.shares_withheld

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.price


class SplitTransaction(_TransactionBase):
    type: Literal[TransactionType.SPLIT]
    ratio: Decimal  # new shares per old share


class CashFlowTransaction(_TransactionBase):
    type: Literal[TransactionType.DIVIDEND, TransactionType.FEE, TransactionType.TAX]
    amount: Decimal


class CorporateActionTransaction(_TransactionBase):
    type: Literal[TransactionType.SPINOFF, TransactionType.MERGER]
    quantity: Decimal = Decimal("0")
    price: Decimal = Decimal("0")


Transaction = Annotated[
    BuyTransaction
    | SellTransaction
    | EsppPurchaseTransaction
    | RsuVestTransaction
    | SplitTransaction
    | CashFlowTransaction
    | CorporateActionTransaction,
    Field(discriminator="type"),
]

TRANSACTION_ADAPTER: TypeAdapter[Transaction] = TypeAdapter(Transaction)
