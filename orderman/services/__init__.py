"""
Orderman services — modular organization of order, stock and cost operations.

Re-exports all public service classes:
    from orderman.services import OrderBuilder, OrderFulfillment, StockLedger
"""

from orderman.services.builder import LineInput, OrderBuilder, OrderDraft
from orderman.services.cancellation import OrderCancellation
from orderman.services.catalog import CatalogResolver
from orderman.services.costing import CostValuation, apply_incoming
from orderman.services.fulfillment import OrderFulfillment, classify
from orderman.services.ledger import StockLedger
from orderman.services.purchases import PurchaseLineInput, PurchaseReceiving, parse_payment_terms
from orderman.services.queries import OrderQueries

__all__ = [
    'CatalogResolver',
    'CostValuation',
    'LineInput',
    'OrderBuilder',
    'OrderCancellation',
    'OrderDraft',
    'OrderFulfillment',
    'OrderQueries',
    'PurchaseLineInput',
    'PurchaseReceiving',
    'StockLedger',
    'apply_incoming',
    'classify',
    'parse_payment_terms',
]
