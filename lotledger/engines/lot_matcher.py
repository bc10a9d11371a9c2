"""Lot matching engine: FIFO, LIFO, HIFO, and specific identification."""

import logging
from datetime import date
from decimal import Decimal

from lotledger.engines.holding_period import classify
from lotledger.exceptions import (
    InsufficientQuantityError,
    LotNotFoundError,
    LotSelectionMismatchError,
    NegativeAmountError,
)
from lotledger.models.enums import CostBasisMethod
from lotledger.models.portfolio import TaxLot
from lotledger.models.reports import SaleAllocation

logger = logging.getLogger(__name__)


class LotMatcher:
    """Selects which lots a sale draws from, and by how much."""

    def allocate(
        self,
        lots: list[TaxLot],
        quantity: Decimal,
        sale_price: Decimal,
        sale_date: date,
        method: CostBasisMethod = CostBasisMethod.FIFO,
        selection: dict[str, Decimal] | None = None,
    ) -> list[SaleAllocation]:
        """Allocate a sale across lots.

        Validation happens up front: if the request can't be met in full,
        an error is raised and no allocation is produced.

        Args:
            lots: The holding's lots, exhausted ones included.
            quantity: Units being sold.
            sale_price: Price per unit received.
            sale_date: Date of the sale (drives the holding period).
            method: FIFO, LIFO, HIFO, or SPECIFIC.
            selection: For SPECIFIC, mapping of lot id to quantity.

        Returns:
            One SaleAllocation per lot drawn from, in consumption order.
        """
        if quantity < 0:
            raise NegativeAmountError("quantity", quantity)
        if sale_price < 0:
            raise NegativeAmountError("sale_price", sale_price)

        available = sum((lot.remaining_quantity for lot in lots), Decimal("0"))
        if available < quantity:
            raise InsufficientQuantityError(quantity, available)

        if method == CostBasisMethod.SPECIFIC:
            plan = self._plan_specific(lots, quantity, selection or {})
        else:
            plan = self._plan_ordered(self.order_lots(lots, method), quantity)

        allocations = [
            self._allocation(lot, take, sale_price, sale_date) for lot, take in plan
        ]
        logger.debug(
            "Allocated %s units across %d lot(s) using %s",
            quantity, len(allocations), method,
        )
        return allocations

    @staticmethod
    def order_lots(lots: list[TaxLot], method: CostBasisMethod) -> list[TaxLot]:
        """Open lots in the order the method consumes them."""
        open_lots = [lot for lot in lots if not lot.is_exhausted]
        if method == CostBasisMethod.LIFO:
            return sorted(open_lots, key=lambda lot: lot.purchase_date, reverse=True)
        if method == CostBasisMethod.HIFO:
            return sorted(open_lots, key=lambda lot: lot.purchase_price, reverse=True)
        return sorted(open_lots, key=lambda lot: lot.purchase_date)

    @staticmethod
    def _plan_ordered(
        ordered_lots: list[TaxLot], quantity: Decimal
    ) -> list[tuple[TaxLot, Decimal]]:
        remaining = quantity
        plan: list[tuple[TaxLot, Decimal]] = []
        for lot in ordered_lots:
            if remaining <= 0:
                break
            take = min(lot.remaining_quantity, remaining)
            plan.append((lot, take))
            remaining -= take
        return plan

    @staticmethod
    def _plan_specific(
        lots: list[TaxLot], quantity: Decimal, selection: dict[str, Decimal]
    ) -> list[tuple[TaxLot, Decimal]]:
        """Specific identification: the caller names lots and quantities."""
        lot_map = {lot.id: lot for lot in lots}
        plan: list[tuple[TaxLot, Decimal]] = []
        selected = Decimal("0")

        for lot_id, take in selection.items():
            lot = lot_map.get(lot_id)
            if lot is None:
                raise LotNotFoundError(lot_id)
            if take < 0:
                raise NegativeAmountError(f"selection[{lot_id}]", take)
            if take > lot.remaining_quantity:
                raise InsufficientQuantityError(take, lot.remaining_quantity, lot_id=lot_id)
            if take > 0:
                plan.append((lot, take))
            selected += take

        if selected != quantity:
            raise LotSelectionMismatchError(selected, quantity)
        return plan

    @staticmethod
    def _allocation(
        lot: TaxLot, take: Decimal, sale_price: Decimal, sale_date: date
    ) -> SaleAllocation:
        cost_basis = lot.cost_of(take)
        proceeds = take * sale_price
        return SaleAllocation(
            lot_id=lot.id,
            quantity=take,
            purchase_price=lot.purchase_price,
            purchase_date=lot.purchase_date,
            sale_price=sale_price,
            sale_date=sale_date,
            cost_basis=cost_basis,
            proceeds=proceeds,
            realized_gain=proceeds - cost_basis,
            holding_period=classify(lot.purchase_date, sale_date),
        )
