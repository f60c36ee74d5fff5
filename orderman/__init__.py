"""
Orderman — order fulfillment, stock ledger and weighted-average costing.

Usage:
    from orderman import orders, LineInput, StockError

    result = orders.checkout('tenant-1', customer_id, [LineInput(item.pk, Decimal('2'))])
    orders.mark_delivered('tenant-1', result.lines[0].pk)
    orders.reconcile('tenant-1')
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'orders':
        from orderman.service import Orders
        return Orders
    elif name == 'OrdermanError':
        from orderman.exceptions import OrdermanError
        return OrdermanError
    elif name == 'StockError':
        from orderman.exceptions import StockError
        return StockError
    elif name == 'OrderError':
        from orderman.exceptions import OrderError
        return OrderError
    elif name == 'LineInput':
        from orderman.services.builder import LineInput
        return LineInput
    elif name == 'PurchaseLineInput':
        from orderman.services.purchases import PurchaseLineInput
        return PurchaseLineInput
    elif name == 'PaymentSplit':
        from orderman.protocols.financial import PaymentSplit
        return PaymentSplit
    elif name == 'CatalogItem':
        from orderman.models.catalog import CatalogItem
        return CatalogItem
    elif name == 'Order':
        from orderman.models.order import Order
        return Order
    elif name == 'OrderLine':
        from orderman.models.order import OrderLine
        return OrderLine
    elif name == 'StockMovement':
        from orderman.models.movement import StockMovement
        return StockMovement
    elif name == 'PurchaseOrder':
        from orderman.models.purchase import PurchaseOrder
        return PurchaseOrder
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'orders',
    'OrdermanError',
    'StockError',
    'OrderError',
    'LineInput',
    'PurchaseLineInput',
    'PaymentSplit',
    'CatalogItem',
    'Order',
    'OrderLine',
    'StockMovement',
    'PurchaseOrder',
]

__version__ = '0.1.0'
