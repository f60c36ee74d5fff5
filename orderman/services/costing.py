"""
Cost valuation — weighted moving average cost (CMPM).

Formula:
    new_avg = (stock_value_before + incoming_value) / (stock_qty + incoming_qty)
    where stock_value_before = max(stock_qty, 0) × current_avg
          incoming_value     = incoming_qty × incoming_unit_cost

On sale: cost doesn't change; the current average is captured as the
line's cost snapshot.
On incoming stock: the average is recalculated across the whole position.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from orderman.exceptions import StockError
from orderman.models.catalog import CatalogItem
from orderman.models.cost import CostHistoryEntry
from orderman.models.enums import MovementType
from orderman.money import ZERO, as_decimal, round_cost, round_money, round_qty
from orderman.services.ledger import StockLedger, lock_item

logger = logging.getLogger('orderman')


@dataclass(frozen=True)
class CmpmResult:
    """Before/after figures of one CMPM application."""

    previous_average_cost: Decimal
    new_average_cost: Decimal
    previous_stock_qty: Decimal
    new_stock_qty: Decimal
    stock_value_before: Decimal
    stock_value_after: Decimal


def apply_incoming(prev_qty, prev_avg_cost, incoming_qty, incoming_unit_cost) -> CmpmResult:
    """
    Weighted average after a stock increase. Pure function.

    A negative starting position counts as zero: the incoming units
    are valued on their own.

    Args:
        prev_qty: Stock quantity before the movement
        prev_avg_cost: Average cost before the movement
        incoming_qty: Quantity being added (positive)
        incoming_unit_cost: Cost per incoming unit

    Returns:
        CmpmResult, average rounded to 4 places and values to 2
    """
    prev_qty = as_decimal(prev_qty)
    prev_avg_cost = as_decimal(prev_avg_cost)
    incoming_qty = as_decimal(incoming_qty)
    incoming_unit_cost = as_decimal(incoming_unit_cost)

    previous_stock_qty = max(prev_qty, ZERO)
    stock_value_before = previous_stock_qty * prev_avg_cost
    incoming_value = incoming_qty * incoming_unit_cost

    new_stock_qty = previous_stock_qty + incoming_qty
    stock_value_after = stock_value_before + incoming_value

    if new_stock_qty > 0:
        new_average_cost = stock_value_after / new_stock_qty
    else:
        new_average_cost = incoming_unit_cost

    return CmpmResult(
        previous_average_cost=prev_avg_cost,
        new_average_cost=round_cost(new_average_cost),
        previous_stock_qty=previous_stock_qty,
        new_stock_qty=new_stock_qty,
        stock_value_before=round_money(stock_value_before),
        stock_value_after=round_money(stock_value_after),
    )


class CostValuation:
    """Average cost methods."""

    @classmethod
    def current_cost(cls, tenant_id, item_id) -> Decimal:
        """Average cost to snapshot on a sale line (no lock, no change)."""
        try:
            item = CatalogItem.objects.get(pk=item_id, tenant_id=tenant_id)
        except CatalogItem.DoesNotExist:
            raise StockError('ITEM_NOT_FOUND', item_id=item_id, tenant_id=tenant_id) from None
        return item.current_cost

    @classmethod
    def receive_incoming(cls, tenant_id, item_id, quantity, unit_cost, *,
                         movement_type=MovementType.PURCHASE, apply_cost=True,
                         purchase_order=None, purchase_line=None,
                         order=None, order_line=None,
                         reference='', user=None):
        """
        Record an incoming movement and re-average the item cost.

        The average uses the quantity on hand BEFORE the movement, read
        under the same lock that records the movement.

        Args:
            apply_cost: False records the stock only (e.g. a return that
                        must not disturb book cost)

        Returns:
            (StockMovement, CmpmResult | None)

        Raises:
            StockError('INVALID_QUANTITY'): quantity <= 0
            StockError('INVALID_COST'): unit_cost < 0
            StockError('ITEM_NOT_FOUND'): Item missing for tenant

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the catalog item
        """
        quantity = round_qty(quantity)
        unit_cost = as_decimal(unit_cost)
        if quantity <= 0:
            raise StockError('INVALID_QUANTITY', requested=quantity, item_id=item_id)
        if unit_cost < 0:
            raise StockError('INVALID_COST', unit_cost=unit_cost, item_id=item_id)

        with transaction.atomic():
            item = lock_item(tenant_id, item_id)
            prev_qty = item.stock_quantity
            prev_avg = item.current_cost

            movement = StockLedger._record_locked(
                item, movement_type, quantity,
                order=order, order_line=order_line,
                purchase_order=purchase_order, purchase_line=purchase_line,
                unit_cost=unit_cost, reason=reference, user=user,
            )
            if not apply_cost:
                return movement, None

            result = apply_incoming(prev_qty, prev_avg, quantity, unit_cost)

            item.average_cost = result.new_average_cost
            item.cost_price = round_money(result.new_average_cost)
            item.save(update_fields=['average_cost', 'cost_price', 'updated_at'])

            CostHistoryEntry.objects.create(
                tenant_id=tenant_id,
                item=item,
                movement_type=movement_type,
                quantity=quantity,
                unit_cost=unit_cost,
                previous_average_cost=result.previous_average_cost,
                new_average_cost=result.new_average_cost,
                previous_stock_qty=result.previous_stock_qty,
                new_stock_qty=result.new_stock_qty,
                stock_value_before=result.stock_value_before,
                stock_value_after=result.stock_value_after,
                movement=movement,
                purchase_order=purchase_order,
                purchase_line=purchase_line,
                reference=reference or '',
                created_by=user,
            )

        logger.info(
            "cost.applied",
            extra={
                "tenant_id": tenant_id,
                "item_id": item.pk,
                "qty": str(quantity),
                "unit_cost": str(unit_cost),
                "previous_avg": str(result.previous_average_cost),
                "new_avg": str(result.new_average_cost),
            },
        )
        return movement, result
