"""
Cancellation — reverses an order's stock effects and closes its lines.

Stock comes back as `return` movements through the ledger. Average cost
is left untouched: goods return at the cost already on the books.
"""

import logging

from django.db import transaction

from orderman.adapters import get_financial_backend
from orderman.conf import orderman_settings
from orderman.exceptions import OrderError
from orderman.models.enums import (
    DeliveryStatus,
    FulfillmentStatus,
    ItemKind,
    MovementType,
    OrderStatus,
    SeparationStatus,
)
from orderman.models.movement import StockMovement
from orderman.models.order import Order
from orderman.results import CancelResult, StepResult
from orderman.services.ledger import StockLedger, lock_items

logger = logging.getLogger('orderman')


class OrderCancellation:
    """Order cancellation methods."""

    @classmethod
    def cancel(cls, tenant_id, order_id, reason=None, user=None) -> CancelResult:
        """
        Cancel an order.

        Returns stock for every product line that was actually sold out
        of stock, cancels all lines and their open sub-statuses, clears
        the pending flags and appends the reason to the notes.
        Financial cancellation runs afterwards, best-effort.

        Raises:
            OrderError('ORDER_NOT_FOUND'): Order missing for tenant
            OrderError('INVALID_STATUS'): Order already cancelled
        """
        reason = reason or orderman_settings.CANCEL_REASON
        result = CancelResult()

        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().get(pk=order_id, tenant_id=tenant_id)
            except Order.DoesNotExist:
                raise OrderError('ORDER_NOT_FOUND', order_id=order_id, tenant_id=tenant_id) from None

            if order.status == OrderStatus.CANCELLED:
                raise OrderError('INVALID_STATUS', order_id=order.pk, status=order.status)

            sold_line_ids = set(
                StockMovement.objects.for_tenant(tenant_id)
                .filter(order=order, movement_type=MovementType.SALE)
                .values_list('order_line_id', flat=True)
            )

            lines = list(order.lines.select_for_update().order_by('sort_order', 'pk'))
            returned = {
                line.pk for line in lines
                if not line.is_composition_parent
                and line.kind == ItemKind.PRODUCT
                and line.quantity > 0
                and line.pk in sold_line_ids
            }
            lock_items(tenant_id, {line.item_id for line in lines if line.pk in returned})

            for line in lines:
                if line.pk in returned:
                    StockLedger.record_movement(
                        tenant_id, line.item_id, MovementType.RETURN, line.quantity,
                        order=order, order_line=line,
                        reason=f"Cancel order #{order.pk}", user=user,
                    )
                    result.returned_line_ids.append(line.pk)

                line.fulfillment_status = FulfillmentStatus.CANCELLED
                if line.separation_status != SeparationStatus.NOT_REQUIRED:
                    line.separation_status = SeparationStatus.CANCELLED
                if line.delivery_status != DeliveryStatus.NOT_REQUIRED:
                    line.delivery_status = DeliveryStatus.CANCELLED
                line.save(update_fields=['fulfillment_status', 'separation_status', 'delivery_status'])

            note = f"[CANCELLED] {reason}"
            order.status = OrderStatus.CANCELLED
            order.has_pending_products = False
            order.has_pending_services = False
            order.notes = f"{order.notes}\n{note}" if order.notes else note
            order.save(update_fields=[
                'status', 'has_pending_products', 'has_pending_services', 'notes', 'updated_at',
            ])

        result.order = order

        logger.info(
            "order.cancelled",
            extra={
                "tenant_id": tenant_id,
                "order_id": order.pk,
                "returned_lines": len(result.returned_line_ids),
                "reason": reason,
            },
        )

        name = "financial.cancel_sale"
        try:
            get_financial_backend().cancel_sale(order)
            result.steps.append(StepResult.success(name, order.invoice_id))
        except Exception as exc:
            logger.exception(
                "order.step_failed",
                extra={"order_id": order.pk, "step": name},
            )
            result.steps.append(StepResult.failure(name, exc))

        return result
