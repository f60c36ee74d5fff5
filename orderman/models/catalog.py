"""
CatalogItem model — item definition plus the cached stock figures.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from orderman.models.enums import ItemKind


class CatalogItemQuerySet(models.QuerySet):
    """QuerySet with tenant scoping helpers."""

    def for_tenant(self, tenant_id: str):
        """Filter items belonging to a tenant."""
        return self.filter(tenant_id=tenant_id)

    def tracked(self):
        """Only items that track stock."""
        return self.filter(track_stock=True)

    def low_stock(self):
        """Tracked items at or below their minimum stock."""
        return self.tracked().filter(stock_quantity__lte=models.F('min_stock'))


class CatalogItem(models.Model):
    """
    A product or service offered by a tenant.

    Owned by the catalog: Orderman only reads definitions and is the
    sole writer of the cached figures:
    - stock_quantity: cache of Σ StockMovement.quantity
    - average_cost: weighted moving average (CMPM)
    - cost_price: kept in sync with average_cost on incoming stock

    Use recalculate() for audit/correction of stock_quantity.
    """

    tenant_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Tenant'))
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    sku = models.CharField(max_length=64, blank=True, default='', verbose_name=_('SKU'))
    kind = models.CharField(
        max_length=20,
        choices=ItemKind.choices,
        default=ItemKind.SERVICE,
        verbose_name=_('Kind'),
    )

    # Fulfillment flags
    track_stock = models.BooleanField(default=False, verbose_name=_('Track stock'))
    requires_separation = models.BooleanField(default=False, verbose_name=_('Requires separation'))
    requires_delivery = models.BooleanField(default=False, verbose_name=_('Requires delivery'))
    requires_scheduling = models.BooleanField(default=False, verbose_name=_('Requires scheduling'))
    is_composition = models.BooleanField(
        default=False,
        verbose_name=_('Is composition'),
        help_text=_('Kit of other items, expanded into child lines when sold.'),
    )

    # Prices
    sell_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'), verbose_name=_('Sell price'))
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'), verbose_name=_('Cost price'))
    average_cost = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Average cost'),
        help_text=_('Weighted moving average. Empty = fall back to cost price.'),
    )
    commission_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'), verbose_name=_('Commission %'),
    )

    # Stock
    stock_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Stock quantity'),
        help_text=_('Cache. The stock ledger is the system of record.'),
    )
    min_stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'), verbose_name=_('Minimum stock'))

    unit_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Unit'))
    service_type_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Service type'),
        help_text=_('Links scheduled service lines to a workflow process.'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CatalogItemQuerySet.as_manager()

    class Meta:
        db_table = 'catalog_items'
        verbose_name = _('Catalog item')
        verbose_name_plural = _('Catalog items')
        ordering = ['name']
        indexes = [
            models.Index(fields=['tenant_id', 'track_stock'], name='catalog_tenant_tracked_idx'),
        ]

    @property
    def current_cost(self) -> Decimal:
        """Cost used as the sale-time snapshot."""
        if self.average_cost is not None:
            return self.average_cost
        return self.cost_price

    @property
    def stock_value(self) -> Decimal:
        """Value at average cost; negative stock is worth nothing."""
        return max(self.stock_quantity, Decimal('0')) * self.current_cost

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock

    def recalculate(self) -> Decimal:
        """
        Recalculate stock_quantity from the ledger.

        Use for:
        - Integrity audit
        - Correction after detected drift

        Returns:
            Quantity computed from movements
        """
        import logging

        total = self.movements.filter(tenant_id=self.tenant_id).aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

        if total != self.stock_quantity:
            old = self.stock_quantity
            self.stock_quantity = total
            self.save(update_fields=['stock_quantity', 'updated_at'])

            logger = logging.getLogger('orderman')
            logger.warning(
                f"CatalogItem {self.pk} recalculated: {old} → {total} "
                f"(diff: {total - old})"
            )

        return total

    def __str__(self) -> str:
        return self.name


class CompositionComponent(models.Model):
    """One child of a composition (kit) item."""

    parent = models.ForeignKey(
        CatalogItem,
        on_delete=models.CASCADE,
        related_name='components',
        verbose_name=_('Kit'),
    )
    child = models.ForeignKey(
        CatalogItem,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Component'),
    )
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('1'), verbose_name=_('Quantity per kit'))
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'catalog_compositions'
        verbose_name = _('Composition component')
        verbose_name_plural = _('Composition components')
        ordering = ['sort_order', 'pk']

    def __str__(self) -> str:
        return f"{self.parent} ← {self.quantity} × {self.child}"
