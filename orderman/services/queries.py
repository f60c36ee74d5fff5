"""
Queries — read-only operations.

All methods are classmethods, tenant-scoped, and use no locking.
"""

from dataclasses import dataclass
from decimal import Decimal

from django.db.models import DecimalField, ExpressionWrapper, F, Q, Sum
from django.db.models.functions import Coalesce

from orderman.exceptions import OrderError
from orderman.models.catalog import CatalogItem
from orderman.models.cost import CostHistoryEntry
from orderman.models.enums import (
    DeliveryStatus,
    FulfillmentStatus,
    ItemKind,
    OrderStatus,
    SeparationStatus,
)
from orderman.models.movement import StockMovement
from orderman.models.order import Order, OrderLine
from orderman.money import ZERO, round_money
from orderman.services.fulfillment import CLOSED_ORDER_STATUSES


@dataclass(frozen=True)
class StockPosition:
    """Stock figures of one tracked item."""

    item_id: int
    name: str
    sku: str
    quantity: Decimal
    min_stock: Decimal
    average_cost: Decimal
    stock_value: Decimal
    is_low_stock: bool


@dataclass(frozen=True)
class StockValuation:
    """Tenant-wide inventory summary."""

    item_count: int
    total_value: Decimal
    low_stock_count: int


class OrderQueries:
    """Read-only query methods."""

    # ══════════════════════════════════════════════════════════════
    # STOCK
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def stock_position(cls, tenant_id) -> list[StockPosition]:
        """Quantity, minimum, average cost and value of every tracked item."""
        return [
            StockPosition(
                item_id=item.pk,
                name=item.name,
                sku=item.sku,
                quantity=item.stock_quantity,
                min_stock=item.min_stock,
                average_cost=item.current_cost,
                stock_value=item.stock_value,
                is_low_stock=item.is_low_stock,
            )
            for item in CatalogItem.objects.for_tenant(tenant_id).tracked().order_by('name', 'pk')
        ]

    @classmethod
    def low_stock(cls, tenant_id):
        """Tracked items at or below their minimum stock."""
        return CatalogItem.objects.for_tenant(tenant_id).low_stock().order_by('stock_quantity', 'name')

    @classmethod
    def valuation(cls, tenant_id) -> StockValuation:
        """
        Inventory value at average cost.

        Items in negative stock count as zero value.
        """
        positions = cls.stock_position(tenant_id)
        return StockValuation(
            item_count=len(positions),
            total_value=round_money(sum((p.stock_value for p in positions), ZERO)),
            low_stock_count=sum(1 for p in positions if p.is_low_stock),
        )

    @classmethod
    def movements(cls, tenant_id, item_id=None, movement_type=None):
        """Ledger entries, newest first."""
        qs = StockMovement.objects.for_tenant(tenant_id).select_related('item')
        if item_id is not None:
            qs = qs.for_item(item_id)
        if movement_type:
            qs = qs.filter(movement_type=movement_type)
        return qs.order_by('-created_at', '-pk')

    @classmethod
    def cost_history(cls, tenant_id, item_id):
        """Average cost audit trail of one item, newest first."""
        return CostHistoryEntry.objects.filter(tenant_id=tenant_id, item_id=item_id)

    @classmethod
    def ledger_quantity(cls, tenant_id, item_id) -> Decimal:
        """Σ movements of one item (the authoritative quantity)."""
        return StockMovement.objects.for_tenant(tenant_id).for_item(item_id).aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

    # ══════════════════════════════════════════════════════════════
    # ORDERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_order(cls, tenant_id, order_id) -> Order:
        """
        Raises:
            OrderError('ORDER_NOT_FOUND'): Order missing for tenant
        """
        try:
            return Order.objects.get(pk=order_id, tenant_id=tenant_id)
        except Order.DoesNotExist:
            raise OrderError('ORDER_NOT_FOUND', order_id=order_id, tenant_id=tenant_id) from None

    @classmethod
    def order_lines(cls, tenant_id, order_id):
        """Lines of an order in display order (parents before children)."""
        return OrderLine.objects.for_tenant(tenant_id).filter(order_id=order_id).order_by('sort_order', 'pk')

    @classmethod
    def order_margin(cls, tenant_id, order_id) -> Decimal:
        """
        Gross margin of an order: order subtotal − Σ cost snapshot × quantity.

        Cost is summed over the lines that move goods or render services
        (composition parents excluded); the subtotal already carries any
        kit price override.

        Raises:
            OrderError('ORDER_NOT_FOUND'): Order missing for tenant
        """
        order = cls.get_order(tenant_id, order_id)
        cost = ExpressionWrapper(
            F('cost_price') * F('quantity'),
            output_field=DecimalField(max_digits=18, decimal_places=4),
        )
        totals = cls.order_lines(tenant_id, order.pk).leaves().aggregate(
            cost=Coalesce(Sum(cost), Decimal('0'), output_field=DecimalField()),
        )
        return round_money(order.subtotal - totals['cost'])

    # ══════════════════════════════════════════════════════════════
    # PENDING WORK QUEUES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _open_lines(cls, tenant_id):
        return (
            OrderLine.objects.for_tenant(tenant_id)
            .leaves()
            .exclude(order__status__in=CLOSED_ORDER_STATUSES)
            .exclude(fulfillment_status__in=[FulfillmentStatus.COMPLETED, FulfillmentStatus.CANCELLED])
            .select_related('order', 'item')
            .order_by('order__created_at', 'sort_order', 'pk')
        )

    @classmethod
    def pending_separation(cls, tenant_id):
        """Product lines waiting to be picked or packed."""
        return cls._open_lines(tenant_id).filter(
            kind=ItemKind.PRODUCT,
            separation_status__in=[SeparationStatus.PENDING, SeparationStatus.IN_PROGRESS],
        )

    @classmethod
    def pending_delivery(cls, tenant_id):
        """Product lines not delivered yet (failed attempts included)."""
        return cls._open_lines(tenant_id).filter(
            kind=ItemKind.PRODUCT,
            delivery_status__in=[
                DeliveryStatus.PENDING,
                DeliveryStatus.IN_TRANSIT,
                DeliveryStatus.FAILED,
            ],
        )

    @classmethod
    def pending_scheduling(cls, tenant_id):
        """Service lines with no appointment yet."""
        return cls._open_lines(tenant_id).filter(
            kind=ItemKind.SERVICE,
            fulfillment_status=FulfillmentStatus.PENDING,
        )

    @classmethod
    def orders_with_pending(cls, tenant_id):
        """Completed orders that still have products or services to fulfill."""
        return Order.objects.filter(tenant_id=tenant_id, status=OrderStatus.COMPLETED).filter(
            Q(has_pending_products=True) | Q(has_pending_services=True)
        )
