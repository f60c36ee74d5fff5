"""
Catalog Composition Expander.

Implements CompositionExpander by reading CompositionComponent rows.

Usage:
    from orderman.adapters import get_composition_expander

    expander = get_composition_expander()
    children = expander.explode(tenant_id, kit.pk, Decimal('2'))
"""

from decimal import Decimal

from orderman.models.catalog import CatalogItem, CompositionComponent
from orderman.protocols.composition import ExplodedItem


class CatalogCompositionExpander:
    """
    Default expander backed by the catalog_compositions table.

    Children of other tenants are ignored. Child quantities are
    multiplied by the number of kits sold.
    """

    def explode(self, tenant_id: str, item_id: int, quantity: Decimal) -> list[ExplodedItem]:
        components = (
            CompositionComponent.objects
            .filter(parent_id=item_id, parent__tenant_id=tenant_id, child__tenant_id=tenant_id)
            .select_related('child')
        )
        return [
            self._exploded(component.child, component.quantity * quantity)
            for component in components
        ]

    @staticmethod
    def _exploded(child: CatalogItem, quantity: Decimal) -> ExplodedItem:
        return ExplodedItem(
            item_id=child.pk,
            quantity=quantity,
            kind=child.kind,
            name=child.name,
            sell_price=child.sell_price,
            cost_price=child.current_cost,
            track_stock=child.track_stock,
            requires_separation=child.requires_separation,
            requires_delivery=child.requires_delivery,
            requires_scheduling=child.requires_scheduling,
            commission_percent=child.commission_percent,
            unit_id=child.unit_id,
        )
