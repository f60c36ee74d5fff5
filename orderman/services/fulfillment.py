"""
Fulfillment — initial classification of order lines and the state
machine driven by separation, delivery and scheduling events.

Every event:
1. locks the line (select_for_update) scoped by tenant
2. applies its own sub-status change
3. re-evaluates the line (product lines complete once separation and
   delivery are both resolved)
4. re-aggregates the composition parent, if any
5. recomputes the order pending flags from all non-parent lines
"""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from orderman.exceptions import OrderError
from orderman.models.enums import (
    DeliveryStatus,
    FulfillmentStatus,
    ItemKind,
    OrderStatus,
    SeparationStatus,
)
from orderman.models.order import Order, OrderLine

logger = logging.getLogger('orderman')

CLOSED_ORDER_STATUSES = (OrderStatus.CANCELLED, OrderStatus.REFUNDED)


@dataclass(frozen=True)
class InitialState:
    """Statuses assigned to a line when the order is created."""

    separation_status: str = SeparationStatus.NOT_REQUIRED
    delivery_status: str = DeliveryStatus.NOT_REQUIRED
    fulfillment_status: str = FulfillmentStatus.PENDING
    pending_product: bool = False
    pending_service: bool = False


def classify(line) -> InitialState:
    """
    Initial state of a draft line.

    - Composition parent: pending, resolved later by its children
    - Product needing separation and/or delivery: those sub-statuses
      pending, line pending, order has pending products
    - Product needing neither: completed
    - Service needing scheduling: pending, order has pending services
    - Service not scheduled: completed
    """
    if line.is_composition_parent:
        return InitialState()

    if line.kind == ItemKind.PRODUCT:
        if not (line.requires_separation or line.requires_delivery):
            return InitialState(fulfillment_status=FulfillmentStatus.COMPLETED)
        return InitialState(
            separation_status=(
                SeparationStatus.PENDING if line.requires_separation
                else SeparationStatus.NOT_REQUIRED
            ),
            delivery_status=(
                DeliveryStatus.PENDING if line.requires_delivery
                else DeliveryStatus.NOT_REQUIRED
            ),
            pending_product=True,
        )

    if line.requires_scheduling:
        return InitialState(pending_service=True)
    return InitialState(fulfillment_status=FulfillmentStatus.COMPLETED)


def _is_open(line: OrderLine) -> bool:
    return line.fulfillment_status not in (
        FulfillmentStatus.COMPLETED,
        FulfillmentStatus.CANCELLED,
    )


class OrderFulfillment:
    """Fulfillment event methods."""

    # ══════════════════════════════════════════════════════════════
    # SEPARATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def start_separation(cls, tenant_id, line_id) -> OrderLine:
        """Picking started: separation pending → in_progress."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.PRODUCT)
            if line.separation_status != SeparationStatus.PENDING:
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.separation_status)
            line.separation_status = SeparationStatus.IN_PROGRESS
            line.save(update_fields=['separation_status'])
            return cls._after_event(line, 'separation.started')

    @classmethod
    def mark_separation_ready(cls, tenant_id, line_id, user=None) -> OrderLine:
        """Picking/packing done: separation → ready."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.PRODUCT)
            if line.separation_status not in (SeparationStatus.PENDING, SeparationStatus.IN_PROGRESS):
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.separation_status)
            line.separation_status = SeparationStatus.READY
            line.separated_by = user
            line.separated_at = timezone.now()
            line.save(update_fields=['separation_status', 'separated_by', 'separated_at'])
            return cls._after_event(line, 'separation.ready')

    # ══════════════════════════════════════════════════════════════
    # DELIVERY
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def dispatch(cls, tenant_id, line_id) -> OrderLine:
        """Handed to the carrier: delivery → in_transit."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.PRODUCT)
            if line.delivery_status not in (DeliveryStatus.PENDING, DeliveryStatus.FAILED):
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.delivery_status)
            line.delivery_status = DeliveryStatus.IN_TRANSIT
            line.save(update_fields=['delivery_status'])
            return cls._after_event(line, 'delivery.dispatched')

    @classmethod
    def mark_delivered(cls, tenant_id, line_id) -> OrderLine:
        """Delivery done: delivery → delivered."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.PRODUCT)
            if line.delivery_status not in (
                DeliveryStatus.PENDING, DeliveryStatus.IN_TRANSIT, DeliveryStatus.FAILED,
            ):
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.delivery_status)
            line.delivery_status = DeliveryStatus.DELIVERED
            line.delivered_at = timezone.now()
            line.save(update_fields=['delivery_status', 'delivered_at'])
            return cls._after_event(line, 'delivery.delivered')

    @classmethod
    def mark_delivery_failed(cls, tenant_id, line_id) -> OrderLine:
        """Delivery attempt failed. The line stays pending."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.PRODUCT)
            if line.delivery_status not in (DeliveryStatus.PENDING, DeliveryStatus.IN_TRANSIT):
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.delivery_status)
            line.delivery_status = DeliveryStatus.FAILED
            line.save(update_fields=['delivery_status'])
            return cls._after_event(line, 'delivery.failed')

    # ══════════════════════════════════════════════════════════════
    # SERVICES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def link_appointment(cls, tenant_id, line_id, appointment_id) -> OrderLine:
        """Attach a scheduled appointment: fulfillment → in_progress."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.SERVICE)
            if not _is_open(line):
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.fulfillment_status)
            line.appointment_id = str(appointment_id)
            line.fulfillment_status = FulfillmentStatus.IN_PROGRESS
            line.save(update_fields=['appointment_id', 'fulfillment_status'])
            return cls._after_event(line, 'service.scheduled')

    @classmethod
    def mark_service_completed(cls, tenant_id, line_id) -> OrderLine:
        """Service executed: fulfillment → completed."""
        with transaction.atomic():
            line = cls._lock_line(tenant_id, line_id, kind=ItemKind.SERVICE)
            if line.fulfillment_status == FulfillmentStatus.CANCELLED:
                raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.fulfillment_status)
            line.fulfillment_status = FulfillmentStatus.COMPLETED
            line.save(update_fields=['fulfillment_status'])
            return cls._after_event(line, 'service.completed')

    # ══════════════════════════════════════════════════════════════
    # AGGREGATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def recompute_order_flags(cls, order: Order) -> Order:
        """
        Recalculate the order pending flags from its non-parent lines.

        pending products = any product line neither completed nor cancelled
        pending services = any service line neither completed nor cancelled
        """
        pending_products = False
        pending_services = False
        for line in order.lines.filter(is_composition_parent=False).only(
            'id', 'kind', 'fulfillment_status',
        ):
            if not _is_open(line):
                continue
            if line.kind == ItemKind.PRODUCT:
                pending_products = True
            else:
                pending_services = True

        if (order.has_pending_products, order.has_pending_services) != (pending_products, pending_services):
            order.has_pending_products = pending_products
            order.has_pending_services = pending_services
            order.save(update_fields=['has_pending_products', 'has_pending_services', 'updated_at'])
        return order

    @classmethod
    def _aggregate_parent(cls, parent_id) -> None:
        """Complete a composition parent once every child is completed."""
        parent = OrderLine.objects.select_for_update().get(pk=parent_id)
        if parent.is_completed:
            return
        open_children = parent.children.exclude(fulfillment_status=FulfillmentStatus.COMPLETED)
        if not open_children.exists():
            parent.fulfillment_status = FulfillmentStatus.COMPLETED
            parent.save(update_fields=['fulfillment_status'])

    @classmethod
    def _after_event(cls, line: OrderLine, event: str) -> OrderLine:
        if line.kind == ItemKind.PRODUCT and line.is_fulfilled and _is_open(line):
            line.fulfillment_status = FulfillmentStatus.COMPLETED
            line.save(update_fields=['fulfillment_status'])

        if line.parent_id:
            cls._aggregate_parent(line.parent_id)

        cls.recompute_order_flags(line.order)

        logger.info(
            f"fulfillment.{event}",
            extra={
                "order_id": line.order_id,
                "line_id": line.pk,
                "fulfillment": line.fulfillment_status,
                "separation": line.separation_status,
                "delivery": line.delivery_status,
            },
        )
        return line

    @classmethod
    def _lock_line(cls, tenant_id, line_id, kind=None) -> OrderLine:
        """
        Fetch and lock a line scoped by tenant.

        Raises:
            OrderError('LINE_NOT_FOUND'): Line missing for tenant
            OrderError('INVALID_STATUS'): Order closed or line cancelled
            OrderError('INVALID_KIND'): Event does not apply to the line kind
        """
        try:
            line = (
                OrderLine.objects.select_for_update()
                .select_related('order')
                .get(pk=line_id, order__tenant_id=tenant_id)
            )
        except OrderLine.DoesNotExist:
            raise OrderError('LINE_NOT_FOUND', line_id=line_id, tenant_id=tenant_id) from None

        if line.order.status in CLOSED_ORDER_STATUSES:
            raise OrderError('INVALID_STATUS', line_id=line.pk, order_status=line.order.status)
        if line.fulfillment_status == FulfillmentStatus.CANCELLED:
            raise OrderError('INVALID_STATUS', line_id=line.pk, status=line.fulfillment_status)
        if line.is_composition_parent:
            raise OrderError('INVALID_KIND', line_id=line.pk, reason='composition parent')
        if kind is not None and line.kind != kind:
            raise OrderError('INVALID_KIND', line_id=line.pk, kind=line.kind)
        return line
