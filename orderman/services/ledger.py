"""
Stock ledger — movements, manual adjustments and reconciliation.

All state-changing methods run under transaction.atomic() and lock the
catalog item row (select_for_update) so that the read-modify-write of
the cached quantity is serialized per (tenant, item).
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from orderman.conf import orderman_settings
from orderman.exceptions import StockError
from orderman.models.catalog import CatalogItem
from orderman.models.enums import MovementType
from orderman.models.movement import StockMovement
from orderman.money import as_decimal, round_qty
from orderman.results import Correction, ReconcileResult

logger = logging.getLogger('orderman')


def lock_item(tenant_id: str, item_id) -> CatalogItem:
    """
    Fetch and lock a catalog item scoped by tenant.

    Must be called inside transaction.atomic().

    Raises:
        StockError('ITEM_NOT_FOUND'): Item missing or owned by another tenant
    """
    try:
        return CatalogItem.objects.select_for_update().get(pk=item_id, tenant_id=tenant_id)
    except CatalogItem.DoesNotExist:
        raise StockError('ITEM_NOT_FOUND', item_id=item_id, tenant_id=tenant_id) from None


def lock_items(tenant_id: str, item_ids) -> dict:
    """
    Lock several catalog items in one statement, in primary key order.

    Transactions that move more than one item call this first, so every
    writer acquires row locks in the same order. Items missing for the
    tenant are left out of the result.

    Must be called inside transaction.atomic().
    """
    ids = {item_id for item_id in item_ids if item_id is not None}
    if not ids:
        return {}
    items = (
        CatalogItem.objects.select_for_update()
        .filter(tenant_id=tenant_id, pk__in=ids)
        .order_by('pk')
    )
    return {item.pk: item for item in items}


class StockLedger:
    """Stock movement and reconciliation methods."""

    @classmethod
    def record_movement(cls, tenant_id, item_id, movement_type, quantity, *,
                        order=None, order_line=None, purchase_order=None,
                        purchase_line=None, unit_cost=None, reason='', user=None):
        """
        Record a signed stock movement and update the cached quantity.

        quantity > 0 = stock increase, quantity < 0 = stock decrease.

        Raises:
            StockError('ITEM_NOT_FOUND'): Item missing for tenant
            StockError('INVALID_QUANTITY'): quantity == 0
            StockError('INVALID_MOVEMENT_TYPE'): Unknown type

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the catalog item
        """
        with transaction.atomic():
            item = lock_item(tenant_id, item_id)
            return cls._record_locked(
                item, movement_type, quantity,
                order=order, order_line=order_line,
                purchase_order=purchase_order, purchase_line=purchase_line,
                unit_cost=unit_cost, reason=reason, user=user,
            )

    @classmethod
    def _record_locked(cls, item, movement_type, quantity, *, order=None,
                       order_line=None, purchase_order=None, purchase_line=None,
                       unit_cost=None, reason='', user=None):
        """Record a movement against an item already locked by the caller."""
        if movement_type not in MovementType.values:
            raise StockError('INVALID_MOVEMENT_TYPE', movement_type=movement_type)

        quantity = round_qty(quantity)
        if quantity == 0:
            raise StockError('INVALID_QUANTITY', requested=quantity, item_id=item.pk)

        previous = item.stock_quantity
        new = previous + quantity

        movement = StockMovement.objects.create(
            tenant_id=item.tenant_id,
            item=item,
            movement_type=movement_type,
            quantity=quantity,
            previous_quantity=previous,
            new_quantity=new,
            unit_cost=as_decimal(unit_cost) if unit_cost is not None else None,
            order=order,
            order_line=order_line,
            purchase_order=purchase_order,
            purchase_line=purchase_line,
            reason=reason or '',
            created_by=user,
        )

        item.stock_quantity = new
        item.save(update_fields=['stock_quantity', 'updated_at'])

        logger.info(
            "stock.movement",
            extra={
                "tenant_id": item.tenant_id,
                "item_id": item.pk,
                "type": movement_type,
                "qty": str(quantity),
                "previous": str(previous),
                "new": str(new),
                "movement_id": movement.pk,
            },
        )
        return movement

    @classmethod
    def adjust(cls, tenant_id, item_id, quantity, reason, user=None):
        """
        Manual adjustment (e.g. inventory count correction).

        Positive quantity increases stock, negative decreases.
        Adjustments never change the average cost.

        Raises:
            StockError('REASON_REQUIRED'): If reason is empty
            StockError('NOT_TRACKED'): Item does not track stock
        """
        if not reason:
            raise StockError('REASON_REQUIRED')

        with transaction.atomic():
            item = lock_item(tenant_id, item_id)
            if not item.track_stock:
                raise StockError('NOT_TRACKED', item_id=item.pk)
            return cls._record_locked(
                item, MovementType.ADJUSTMENT, quantity,
                reason=reason, user=user,
            )

    @classmethod
    def recalculate(cls, tenant_id, item_id) -> Decimal:
        """
        Rebuild one item's cached quantity from its movements.

        Returns:
            Quantity computed from the ledger
        """
        with transaction.atomic():
            item = lock_item(tenant_id, item_id)
            return item.recalculate()

    @classmethod
    def reconcile(cls, tenant_id, dry_run=False) -> ReconcileResult:
        """
        Compare every tracked item's cache with Σ movements and fix drift.

        The ledger is truth. A difference above RECONCILE_TOLERANCE
        overwrites the cache and counts as a correction. Running it twice
        makes no further corrections.

        Args:
            tenant_id: Tenant to reconcile
            dry_run: Report corrections without writing

        Returns:
            ReconcileResult(checked, corrections)
        """
        tolerance = orderman_settings.RECONCILE_TOLERANCE

        sums = dict(
            StockMovement.objects.for_tenant(tenant_id)
            .order_by()
            .values('item_id')
            .annotate(total=Sum('quantity'))
            .values_list('item_id', 'total')
        )

        items = CatalogItem.objects.for_tenant(tenant_id).tracked().order_by('pk')
        result = ReconcileResult()

        for item in items.only('id', 'tenant_id', 'stock_quantity'):
            result.checked += 1
            computed = as_decimal(sums.get(item.pk))
            if abs(computed - item.stock_quantity) <= tolerance:
                continue

            if dry_run:
                result.corrections.append(Correction(item.pk, item.stock_quantity, computed))
                continue

            with transaction.atomic():
                locked = lock_item(tenant_id, item.pk)
                computed = as_decimal(
                    StockMovement.objects.for_tenant(tenant_id).for_item(locked.pk)
                    .aggregate(total=Sum('quantity'))['total']
                )
                if abs(computed - locked.stock_quantity) <= tolerance:
                    continue
                cached = locked.stock_quantity
                locked.stock_quantity = computed
                locked.save(update_fields=['stock_quantity', 'updated_at'])

            result.corrections.append(Correction(locked.pk, cached, computed))
            logger.warning(
                "stock.reconcile.corrected",
                extra={
                    "tenant_id": tenant_id,
                    "item_id": locked.pk,
                    "cached": str(cached),
                    "computed": str(computed),
                },
            )

        logger.info(
            "stock.reconcile",
            extra={
                "tenant_id": tenant_id,
                "checked": result.checked,
                "corrected": result.corrected,
                "dry_run": dry_run,
            },
        )
        return result
