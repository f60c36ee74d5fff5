"""
Order and OrderLine models.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from orderman.models.enums import (
    DELIVERY_DONE,
    SEPARATION_DONE,
    DeliveryStatus,
    FulfillmentStatus,
    ItemKind,
    OrderStatus,
    SeparationStatus,
)


class Order(models.Model):
    """
    A checkout. Created once, mutated by fulfillment and cancellation,
    never hard-deleted.
    """

    tenant_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Tenant'))
    customer_id = models.CharField(max_length=64, verbose_name=_('Customer'))
    partner_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Partner'))
    sold_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Sold by'),
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    tax_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        help_text=_('Always zero: no tax engine.'),
    )
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.OPEN,
        db_index=True,
        verbose_name=_('Status'),
    )
    payment_method = models.CharField(max_length=40, blank=True, default='', verbose_name=_('Payment method'))
    paid_at = models.DateTimeField(null=True, blank=True)

    has_pending_products = models.BooleanField(default=False, verbose_name=_('Pending products'))
    has_pending_services = models.BooleanField(default=False, verbose_name=_('Pending services'))

    invoice_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Invoice'))
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant_id', 'status'], name='orders_tenant_status_idx'),
        ]

    def delete(self, *args, **kwargs):
        """Orders are never hard-deleted; cancel them instead."""
        raise ValueError("Orders cannot be deleted. Cancel the order instead.")

    def __str__(self) -> str:
        return f"Order #{self.pk} [{self.status}] {self.total}"


class OrderLineQuerySet(models.QuerySet):

    def for_tenant(self, tenant_id: str):
        return self.filter(order__tenant_id=tenant_id)

    def leaves(self):
        """Lines that carry fulfillment (composition parents excluded)."""
        return self.filter(is_composition_parent=False)


class OrderLine(models.Model):
    """
    One line of an order.

    Composition kits produce a display-only parent line plus one child
    line per component. The parent is completed iff every child is.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name='lines',
        verbose_name=_('Order'),
    )
    item = models.ForeignKey(
        'orderman.CatalogItem',
        on_delete=models.PROTECT,
        related_name='order_lines',
        verbose_name=_('Item'),
    )
    kind = models.CharField(max_length=20, choices=ItemKind.choices, verbose_name=_('Kind'))
    description = models.CharField(max_length=255, blank=True, default='')

    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_id = models.CharField(max_length=64, blank=True, default='')
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    cost_price = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal('0'),
        help_text=_('Average cost snapshot at sale time.'),
    )
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    commission_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    separation_status = models.CharField(
        max_length=20,
        choices=SeparationStatus.choices,
        default=SeparationStatus.NOT_REQUIRED,
        db_index=True,
    )
    separated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    separated_at = models.DateTimeField(null=True, blank=True)

    delivery_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.NOT_REQUIRED,
        db_index=True,
    )
    delivered_at = models.DateTimeField(null=True, blank=True)

    fulfillment_status = models.CharField(
        max_length=20,
        choices=FulfillmentStatus.choices,
        default=FulfillmentStatus.PENDING,
        db_index=True,
    )
    appointment_id = models.CharField(max_length=64, blank=True, default='')
    process_instance_id = models.CharField(max_length=64, blank=True, default='')

    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='children',
        verbose_name=_('Composition parent'),
    )
    is_composition_parent = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = OrderLineQuerySet.as_manager()

    class Meta:
        db_table = 'order_lines'
        verbose_name = _('Order line')
        verbose_name_plural = _('Order lines')
        ordering = ['order', 'sort_order']

    @property
    def is_fulfilled(self) -> bool:
        """Separation and delivery sub-processes are both resolved."""
        return (
            self.separation_status in SEPARATION_DONE
            and self.delivery_status in DELIVERY_DONE
        )

    @property
    def is_completed(self) -> bool:
        return self.fulfillment_status == FulfillmentStatus.COMPLETED

    def __str__(self) -> str:
        return f"{self.quantity} × {self.description or self.item_id} [{self.fulfillment_status}]"
