"""
StockMovement model — Immutable ledger of quantity changes.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from orderman.models.enums import MovementType


class StockMovementQuerySet(models.QuerySet):

    def for_tenant(self, tenant_id: str):
        return self.filter(tenant_id=tenant_id)

    def for_item(self, item_id):
        return self.filter(item_id=item_id)


class StockMovement(models.Model):
    """
    Immutable record of a quantity change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new movements with inverse quantity
    - previous_quantity / new_quantity are captured under the item lock

    Written only by the stock ledger (orderman.services.ledger).
    """

    tenant_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Tenant'))
    item = models.ForeignKey(
        'orderman.CatalogItem',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Item'),
    )
    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        db_index=True,
        verbose_name=_('Type'),
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantity'),
        help_text=_('Positive = incoming, negative = outgoing'),
    )
    previous_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    new_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit_cost = models.DecimalField(max_digits=14, decimal_places=4, null=True, blank=True)

    # Links
    order = models.ForeignKey(
        'orderman.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
    )
    order_line = models.ForeignKey(
        'orderman.OrderLine',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
    )
    purchase_order = models.ForeignKey(
        'orderman.PurchaseOrder',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
    )
    purchase_line = models.ForeignKey(
        'orderman.PurchaseOrderLine',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
    )

    reason = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Reason'))
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('User'),
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        db_table = 'stock_movements'
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['created_at', 'pk']
        indexes = [
            models.Index(fields=['tenant_id', 'item'], name='movement_tenant_item_idx'),
            models.Index(fields=['order_line', 'movement_type'], name='movement_line_type_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Stock movements are immutable. "
                "To correct, record a new movement with the inverse quantity."
            )
        if not self.quantity:
            raise ValueError("Stock movement quantity must not be zero")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(
            "Stock movements are immutable. "
            "To reverse, record a new movement with the inverse quantity."
        )

    @property
    def is_incoming(self) -> bool:
        return self.quantity > 0

    def __str__(self) -> str:
        signal = '+' if self.quantity > 0 else ''
        return f"{signal}{self.quantity} | {self.movement_type} | {self.previous_quantity} → {self.new_quantity}"
