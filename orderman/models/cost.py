"""
CostHistoryEntry model — audit trail of average cost changes.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from orderman.models.enums import MovementType


class CostHistoryEntry(models.Model):
    """
    One application of the weighted moving average (CMPM).

    Written only on incoming movements. Immutable.
    """

    tenant_id = models.CharField(max_length=64, db_index=True)
    item = models.ForeignKey(
        'orderman.CatalogItem',
        on_delete=models.PROTECT,
        related_name='cost_history',
        verbose_name=_('Item'),
    )
    movement_type = models.CharField(max_length=20, choices=MovementType.choices)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=14, decimal_places=4)

    previous_average_cost = models.DecimalField(max_digits=14, decimal_places=4)
    new_average_cost = models.DecimalField(max_digits=14, decimal_places=4)
    previous_stock_qty = models.DecimalField(max_digits=12, decimal_places=3)
    new_stock_qty = models.DecimalField(max_digits=12, decimal_places=3)
    stock_value_before = models.DecimalField(max_digits=14, decimal_places=2)
    stock_value_after = models.DecimalField(max_digits=14, decimal_places=2)

    movement = models.OneToOneField(
        'orderman.StockMovement',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='cost_entry',
    )
    purchase_order = models.ForeignKey(
        'orderman.PurchaseOrder',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
    )
    purchase_line = models.ForeignKey(
        'orderman.PurchaseOrderLine',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
    )
    reference = models.CharField(max_length=255, blank=True, default='')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'cost_history'
        verbose_name = _('Cost history entry')
        verbose_name_plural = _('Cost history')
        ordering = ['-created_at', '-pk']

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError("Cost history entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Cost history entries are immutable.")

    def __str__(self) -> str:
        return f"{self.item_id}: {self.previous_average_cost} → {self.new_average_cost}"
