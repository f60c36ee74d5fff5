"""
Orderman Models.

Core models for order fulfillment and costing:
- CatalogItem: Item definition + cached stock quantity and average cost
- CompositionComponent: Kit children
- Order / OrderLine: Checkout and per-line fulfillment state
- StockMovement: Immutable stock ledger
- CostHistoryEntry: Immutable average cost audit trail
- PurchaseOrder / PurchaseOrderLine: Stock input from suppliers
"""

from orderman.models.catalog import CatalogItem, CompositionComponent
from orderman.models.cost import CostHistoryEntry
from orderman.models.enums import (
    DeliveryStatus,
    FulfillmentStatus,
    ItemKind,
    MovementType,
    OrderStatus,
    PurchaseStatus,
    SeparationStatus,
)
from orderman.models.movement import StockMovement
from orderman.models.order import Order, OrderLine
from orderman.models.purchase import PurchaseOrder, PurchaseOrderLine

__all__ = [
    'ItemKind',
    'OrderStatus',
    'SeparationStatus',
    'DeliveryStatus',
    'FulfillmentStatus',
    'MovementType',
    'PurchaseStatus',
    'CatalogItem',
    'CompositionComponent',
    'Order',
    'OrderLine',
    'StockMovement',
    'CostHistoryEntry',
    'PurchaseOrder',
    'PurchaseOrderLine',
]
