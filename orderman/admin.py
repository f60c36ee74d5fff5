"""
Orderman Admin — read-only views for production debugging.

- CatalogItem: definitions editable, cached figures read-only
- Order / OrderLine: read-only, with a "cancel" action
- StockMovement: read-only audit trail
- CostHistoryEntry: read-only audit trail
- PurchaseOrder: read-only with lines inline

Stock and cost only change through the orders service.
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from orderman.exceptions import OrderError
from orderman.models import (
    CatalogItem,
    CompositionComponent,
    CostHistoryEntry,
    Order,
    OrderLine,
    OrderStatus,
    PurchaseOrder,
    PurchaseOrderLine,
    StockMovement,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """No add, change or delete from the admin."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# CATALOG
# =========================================================================


class CompositionComponentInline(admin.TabularInline):
    model = CompositionComponent
    fk_name = 'parent'
    extra = 0
    fields = ['child', 'quantity', 'sort_order']


@admin.register(CatalogItem)
class CatalogItemAdmin(admin.ModelAdmin):
    """Catalog item admin — cached stock and cost are read-only."""

    list_display = ['name', 'sku', 'kind', 'tenant_id', 'track_stock',
                    'stock_quantity', 'min_stock', 'average_cost', 'low_stock_display']
    list_filter = ['kind', 'track_stock', 'is_composition']
    search_fields = ['name', 'sku', 'tenant_id']
    readonly_fields = ['stock_quantity', 'average_cost', 'cost_price', 'created_at', 'updated_at']
    inlines = [CompositionComponentInline]

    @admin.display(description=_('Low stock'), boolean=True)
    def low_stock_display(self, obj):
        return obj.is_low_stock


# =========================================================================
# ORDERS
# =========================================================================


class OrderLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = OrderLine
    fk_name = 'order'
    extra = 0
    fields = ['description', 'kind', 'quantity', 'unit_price', 'subtotal', 'cost_price',
              'separation_status', 'delivery_status', 'fulfillment_status', 'parent']
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Order admin — read-only with cancel action."""

    list_display = ['id', 'tenant_id', 'customer_id', 'total', 'status', 'payment_method',
                    'has_pending_products', 'has_pending_services', 'created_at']
    list_filter = ['status', 'has_pending_products', 'has_pending_services']
    search_fields = ['id', 'customer_id', 'tenant_id', 'invoice_id']
    date_hierarchy = 'created_at'
    inlines = [OrderLineInline]
    actions = ['cancel_orders']

    @admin.action(description=_('Cancel selected orders'))
    def cancel_orders(self, request, queryset):
        from orderman import orders

        count = 0
        for order in queryset.exclude(status=OrderStatus.CANCELLED):
            try:
                orders.cancel(order.tenant_id, order.pk, reason=_('Cancelled via admin'), user=request.user)
                count += 1
            except OrderError as exc:
                logger.warning("cancel_orders: failed to cancel %s: %s", order.pk, exc)

        self.message_user(request, _('{count} order(s) cancelled.').format(count=count))


@admin.register(OrderLine)
class OrderLineAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Order line admin — read-only."""

    list_display = ['id', 'order', 'description', 'kind', 'quantity',
                    'separation_status', 'delivery_status', 'fulfillment_status']
    list_filter = ['kind', 'separation_status', 'delivery_status', 'fulfillment_status']
    search_fields = ['description', 'order__id', 'appointment_id']


# =========================================================================
# LEDGER (immutable audit trails)
# =========================================================================


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Stock movement admin — read-only. Immutable audit trail."""

    list_display = ['created_at', 'item', 'movement_type', 'quantity',
                    'previous_quantity', 'new_quantity', 'reason', 'created_by']
    list_filter = ['movement_type', 'created_at']
    search_fields = ['reason', 'item__name', 'tenant_id']
    date_hierarchy = 'created_at'


@admin.register(CostHistoryEntry)
class CostHistoryEntryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Cost history admin — read-only. Immutable audit trail."""

    list_display = ['created_at', 'item', 'movement_type', 'quantity', 'unit_cost',
                    'previous_average_cost', 'new_average_cost', 'reference']
    list_filter = ['movement_type']
    search_fields = ['reference', 'item__name', 'tenant_id']
    date_hierarchy = 'created_at'


# =========================================================================
# PURCHASES
# =========================================================================


class PurchaseOrderLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = PurchaseOrderLine
    extra = 0
    fields = ['item', 'quantity_ordered', 'quantity_received', 'unit_cost',
              'subtotal', 'update_cost_price', 'received_at']
    readonly_fields = fields


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Purchase order admin — read-only. Receive through the orders service."""

    list_display = ['id', 'supplier_name', 'invoice_number', 'total', 'status',
                    'ordered_at', 'received_at']
    list_filter = ['status']
    search_fields = ['supplier_name', 'invoice_number', 'tenant_id']
    inlines = [PurchaseOrderLineInline]
