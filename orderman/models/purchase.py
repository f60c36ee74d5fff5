"""
PurchaseOrder models — stock input from suppliers.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from orderman.models.enums import PurchaseStatus


class PurchaseOrder(models.Model):
    """Purchase order header."""

    tenant_id = models.CharField(max_length=64, db_index=True)
    supplier_id = models.CharField(max_length=64, blank=True, default='')
    supplier_name = models.CharField(max_length=200, blank=True, default='')
    invoice_number = models.CharField(max_length=64, blank=True, default='')

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    status = models.CharField(
        max_length=20,
        choices=PurchaseStatus.choices,
        default=PurchaseStatus.DRAFT,
        db_index=True,
    )
    payment_method = models.CharField(max_length=40, blank=True, default='')
    installments = models.PositiveIntegerField(null=True, blank=True)
    payment_terms = models.CharField(
        max_length=100,
        blank=True,
        default='',
        help_text=_('E.g. "30/60/90 days". Empty = due on receipt.'),
    )

    ordered_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'purchase_orders'
        verbose_name = _('Purchase order')
        verbose_name_plural = _('Purchase orders')
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"PO #{self.pk} {self.supplier_name} [{self.status}]"


class PurchaseOrderLine(models.Model):
    """Purchase order line."""

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    item = models.ForeignKey(
        'orderman.CatalogItem',
        on_delete=models.PROTECT,
        related_name='+',
    )
    description = models.CharField(max_length=255, blank=True, default='')
    quantity_ordered = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_received = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit_cost = models.DecimalField(max_digits=14, decimal_places=4)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    update_cost_price = models.BooleanField(
        default=True,
        help_text=_('Apply weighted average cost on receipt.'),
    )
    received_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'purchase_order_lines'
        verbose_name = _('Purchase order line')
        verbose_name_plural = _('Purchase order lines')
        ordering = ['pk']

    @property
    def is_fully_received(self) -> bool:
        return self.quantity_received >= self.quantity_ordered

    def __str__(self) -> str:
        return f"{self.quantity_received}/{self.quantity_ordered} × {self.item_id}"
