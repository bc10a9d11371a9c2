"""Ledger builder: apply transactions to holdings and rebuild holdings from history.

Every operation returns a new Holding; the input is never mutated. A
transaction that fails validation raises before any new state is built, so a
caller either gets a complete update or nothing.
"""

import logging
from datetime import datetime, time
from decimal import Decimal

from lotledger.engines.espp import ESPPEngine
from lotledger.engines.lot_matcher import LotMatcher
from lotledger.engines.property import calculate_net_value
from lotledger.engines.rsu import RSUEngine
from lotledger.engines.thresholds import HUNDRED, ZERO
from lotledger.exceptions import DataValidationError, NegativeAmountError
from lotledger.models.enums import CostBasisMethod, LotType
from lotledger.models.portfolio import Holding, TaxLot
from lotledger.models.reports import LedgerUpdate
from lotledger.models.transactions import (
    BuyTransaction,
    EsppPurchaseTransaction,
    RsuVestTransaction,
    SellTransaction,
    SplitTransaction,
    Transaction,
)

logger = logging.getLogger(__name__)


class LedgerBuilder:
    """Applies buy/sell/split/compensation transactions to a holding's lots."""

    def __init__(self, matcher: LotMatcher | None = None) -> None:
        self.matcher = matcher or LotMatcher()
        self.espp = ESPPEngine()
        self.rsu = RSUEngine()

    def apply(
        self,
        holding: Holding,
        transaction: Transaction,
        method: CostBasisMethod = CostBasisMethod.FIFO,
        selection: dict[str, Decimal] | None = None,
        current_price: Decimal | None = None,
    ) -> LedgerUpdate:
        """Apply one transaction and return the recomputed holding.

        Args:
            holding: Current holding (left untouched).
            transaction: The transaction to apply.
            method: Cost-basis method for sells.
            selection: Lot id -> quantity, for SPECIFIC sells.
            current_price: Market price to value the result at. Defaults to
                the transaction's own price for buys and sells.

        Transaction prices are for the whole asset. On a partially owned
        holding the new lot's price and the sale proceeds are scaled to the
        owner's share, so lot basis and holding value stay on the same footing.

        Returns:
            LedgerUpdate with the new holding, sale allocations (sells) and
            the created lot (buy-like transactions).
        """
        if transaction.asset_id != holding.asset_id:
            raise DataValidationError(
                "asset_id",
                f"transaction {transaction.id} is for {transaction.asset_id}, "
                f"holding {holding.id} is for {holding.asset_id}",
            )
        self.validate(transaction)

        share = holding.ownership_percentage
        lots = [lot.model_copy(deep=True) for lot in holding.lots]
        allocations = []
        new_lot: TaxLot | None = None
        price_hint: Decimal | None = None

        if isinstance(transaction, (BuyTransaction, EsppPurchaseTransaction, RsuVestTransaction)):
            new_lot = self._owned_share(self.lot_from_transaction(transaction), share)
            lots.append(new_lot)
            price_hint = transaction.price
        elif isinstance(transaction, SellTransaction):
            allocations = self.matcher.allocate(
                lots,
                transaction.quantity,
                calculate_net_value(transaction.price, share),
                transaction.trade_date,
                method=method,
                selection=selection,
            )
            consumed = {a.lot_id: a.quantity for a in allocations}
            lots = [self._consume(lot, consumed.get(lot.id, ZERO)) for lot in lots]
            price_hint = transaction.price
        elif isinstance(transaction, SplitTransaction):
            lots = [self._split(lot, transaction.ratio) for lot in lots]
        else:
            logger.debug("%s %s leaves lots unchanged", transaction.type, transaction.id)

        updated = holding.model_copy(update={"lots": lots})
        price = current_price if current_price is not None else price_hint
        return LedgerUpdate(
            holding=self.recompute(
                updated, price, as_of=datetime.combine(transaction.trade_date, time.min)
            ),
            allocations=allocations,
            lot=new_lot,
        )

    def build_holding(
        self,
        transactions: list[Transaction],
        holding_id: str,
        portfolio_id: str,
        asset_id: str,
        method: CostBasisMethod = CostBasisMethod.FIFO,
        selections: dict[str, dict[str, Decimal]] | None = None,
        current_price: Decimal | None = None,
        ownership_percentage: Decimal = HUNDRED,
    ) -> Holding:
        """Fold a full transaction history into a fresh holding.

        Transactions are replayed in date order; ``selections`` maps a sell's
        transaction id to its specific-lot selection.
        """
        selections = selections or {}
        holding = Holding(
            id=holding_id,
            portfolio_id=portfolio_id,
            asset_id=asset_id,
            ownership_percentage=ownership_percentage,
        )
        for transaction in sorted(transactions, key=lambda t: t.trade_date):
            if transaction.asset_id != asset_id:
                continue
            selection = selections.get(transaction.id)
            holding = self.apply(
                holding,
                transaction,
                method=CostBasisMethod.SPECIFIC if selection else method,
                selection=selection,
            ).holding
        if current_price is not None:
            holding = self.recompute(holding, current_price)
        return holding

    def recompute(
        self,
        holding: Holding,
        current_price: Decimal | None = None,
        as_of: datetime | None = None,
    ) -> Holding:
        """Recompute summary fields from the lots.

        Without a price the stored current value is kept (a split doesn't
        change it); with one, the value is quantity x price scaled by the
        ownership percentage. ``last_updated`` becomes *as_of* when given and
        is otherwise left as it was.
        """
        quantity = sum((lot.remaining_quantity for lot in holding.lots), ZERO)
        cost_basis = sum((lot.cost_basis for lot in holding.lots), ZERO)
        average_cost = cost_basis / quantity if quantity else ZERO

        if current_price is not None:
            current_value = calculate_net_value(
                quantity * current_price, holding.ownership_percentage
            )
        elif quantity:
            current_value = holding.current_value
        else:
            current_value = ZERO

        unrealized_gain = current_value - cost_basis
        unrealized_gain_percent = unrealized_gain / cost_basis * HUNDRED if cost_basis > 0 else ZERO

        return holding.model_copy(update={
            "quantity": quantity,
            "cost_basis": cost_basis,
            "average_cost": average_cost,
            "current_value": current_value,
            "unrealized_gain": unrealized_gain,
            "unrealized_gain_percent": unrealized_gain_percent,
            "last_updated": as_of if as_of is not None else holding.last_updated,
        })

    def lot_from_transaction(
        self, transaction: BuyTransaction | EsppPurchaseTransaction | RsuVestTransaction
    ) -> TaxLot:
        """Build the single lot a buy-like transaction creates."""
        lot_id = f"lot-{transaction.id}"
        if isinstance(transaction, EsppPurchaseTransaction):
            bargain = None
            if transaction.market_price_at_purchase is not None:
                bargain = self.espp.bargain_element(
                    transaction.market_price_at_purchase, transaction.price
                )
            return TaxLot(
                id=lot_id,
                quantity=transaction.quantity,
                purchase_price=transaction.price,
                purchase_date=transaction.trade_date,
                remaining_quantity=transaction.quantity,
                lot_type=LotType.ESPP,
                grant_date=transaction.grant_date,
                discount_percent=transaction.discount_percent,
                market_price_at_purchase=transaction.market_price_at_purchase,
                bargain_element=bargain,
                notes=transaction.notes,
            )
        if isinstance(transaction, RsuVestTransaction):
            vest = self.rsu.compute_vest(
                transaction.gross_shares, transaction.shares_withheld, transaction.price
            )
            return TaxLot(
                id=lot_id,
                quantity=vest.net_shares,
                purchase_price=vest.cost_basis_per_share,
                purchase_date=transaction.trade_date,
                remaining_quantity=vest.net_shares,
                lot_type=LotType.RSU,
                grant_date=transaction.grant_date,
                vesting_date=transaction.trade_date,
                shares_withheld=vest.shares_withheld,
                notes=transaction.notes,
            )
        return TaxLot(
            id=lot_id,
            quantity=transaction.quantity,
            purchase_price=transaction.price,
            purchase_date=transaction.trade_date,
            remaining_quantity=transaction.quantity,
            notes=transaction.notes,
        )

    def validate(self, transaction: Transaction) -> None:
        """Reject negative amounts and inconsistent compensation data."""
        if transaction.fees < 0:
            raise NegativeAmountError("fees", transaction.fees)

        if isinstance(transaction, (BuyTransaction, SellTransaction, EsppPurchaseTransaction)):
            self._non_negative(quantity=transaction.quantity, price=transaction.price)
        if isinstance(transaction, EsppPurchaseTransaction):
            self.espp.validate_dates(transaction.grant_date, transaction.trade_date)
            if transaction.market_price_at_purchase is not None:
                self._non_negative(market_price_at_purchase=transaction.market_price_at_purchase)
        elif isinstance(transaction, RsuVestTransaction):
            self.rsu.validate(
                transaction.gross_shares, transaction.shares_withheld, transaction.price
            )
        elif isinstance(transaction, SplitTransaction) and transaction.ratio <= 0:
            raise DataValidationError(
                "ratio", f"split ratio must be positive, got {transaction.ratio}"
            )

    @staticmethod
    def _non_negative(**values: Decimal) -> None:
        for field, value in values.items():
            if value < 0:
                raise NegativeAmountError(field, value)

    @staticmethod
    def _consume(lot: TaxLot, quantity: Decimal) -> TaxLot:
        if not quantity:
            return lot
        return lot.model_copy(update={
            "sold_quantity": lot.sold_quantity + quantity,
            "remaining_quantity": lot.remaining_quantity - quantity,
        })

    @staticmethod
    def _split(lot: TaxLot, ratio: Decimal) -> TaxLot:
        """Stock split: quantities scale by the ratio, price divides by it.

        The lot's total cost is carried over unchanged, since the divided
        price can round (10 @ 100 split 3:1 is not exactly 30 @ 33.33...).
        """
        total_cost = lot.total_cost if lot.total_cost is not None else lot.quantity * lot.purchase_price
        return lot.model_copy(update={
            "quantity": lot.quantity * ratio,
            "sold_quantity": lot.sold_quantity * ratio,
            "remaining_quantity": lot.remaining_quantity * ratio,
            "purchase_price": lot.purchase_price / ratio,
            "total_cost": total_cost,
        })

    @staticmethod
    def _owned_share(lot: TaxLot, ownership_percentage: Decimal) -> TaxLot:
        if ownership_percentage == HUNDRED:
            return lot
        update = {"purchase_price": calculate_net_value(lot.purchase_price, ownership_percentage)}
        if lot.bargain_element is not None:
            update["bargain_element"] = calculate_net_value(lot.bargain_element, ownership_percentage)
        return lot.model_copy(update=update)
