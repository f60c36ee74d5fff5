"""
Orders Service — The single public interface for all Orderman operations.

Usage:
    from decimal import Decimal
    from orderman import orders, LineInput, OrderError

    result = orders.checkout('tenant-1', customer_id, [
        LineInput(item_id=shampoo.pk, quantity=Decimal('2')),
    ], payment_method='pix')

    orders.mark_separation_ready('tenant-1', result.lines[0].pk, user=clerk)
    orders.receive_purchase('tenant-1', po.pk, [(po_line.pk, Decimal('10'))])
    orders.reconcile('tenant-1')

Every operation takes the tenant id first; nothing crosses tenants.
"""

from orderman.services.builder import OrderBuilder
from orderman.services.cancellation import OrderCancellation
from orderman.services.costing import CostValuation
from orderman.services.fulfillment import OrderFulfillment
from orderman.services.ledger import StockLedger
from orderman.services.purchases import PurchaseReceiving
from orderman.services.queries import OrderQueries


class Orders(
    OrderQueries,
    OrderBuilder,
    OrderFulfillment,
    OrderCancellation,
    StockLedger,
    CostValuation,
    PurchaseReceiving,
):
    """
    Single interface for all order, stock and cost operations.

    IMPORTANT: All state-changing methods use atomic transactions and
    lock the catalog item (or order line / purchase) they modify.
    See each method's docstring.
    """
