"""
Composition Expander Protocol — explodes a kit item into its children.

Orderman defines this protocol; the catalog (or any other system that
owns kit definitions) implements it. The default implementation reads
CompositionComponent rows: orderman.adapters.catalog.CatalogCompositionExpander.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ExplodedItem:
    """One child line produced by exploding a composition."""

    item_id: int
    quantity: Decimal  # Already multiplied by the sold kit quantity
    kind: str  # "product" | "service"
    name: str
    sell_price: Decimal = Decimal('0')
    cost_price: Decimal = Decimal('0')
    track_stock: bool = False
    requires_separation: bool = False
    requires_delivery: bool = False
    requires_scheduling: bool = False
    commission_percent: Decimal = Decimal('0')
    unit_id: str = ''


@runtime_checkable
class CompositionExpander(Protocol):
    """Protocol for expanding composition (kit) items."""

    def explode(self, tenant_id: str, item_id: int, quantity: Decimal) -> list[ExplodedItem]:
        """
        Explode a kit into child items.

        Args:
            tenant_id: Tenant owning the kit
            item_id: Kit catalog item id
            quantity: Number of kits sold

        Returns:
            Child items in display order, quantities multiplied by `quantity`
        """
        ...
