"""
Exceptions for Orderman.

All errors carry a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class OrdermanError(Exception):
    """
    Base structured exception.

    Usage:
        raise StockError('ITEM_NOT_FOUND', item_id=item_id, tenant_id=tenant)

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class StockError(OrdermanError):
    """
    Errors raised by the stock ledger and the cost engine.

    Usage:
        try:
            orders.record_movement(tenant, item_id, 'sale', Decimal('-2'))
        except StockError as e:
            if e.code == 'ITEM_NOT_FOUND':
                ...
    """

    _default_messages = {
        'ITEM_NOT_FOUND': 'Catalog item not found for tenant',
        'INVALID_QUANTITY': 'Invalid quantity',
        'INVALID_COST': 'Unit cost must not be negative',
        'INVALID_MOVEMENT_TYPE': 'Unknown stock movement type',
        'REASON_REQUIRED': 'A reason is required',
        'NOT_TRACKED': 'Item does not track stock',
    }

    @property
    def item_id(self):
        """Shortcut for data['item_id']."""
        return self.data.get('item_id')


class OrderError(OrdermanError):
    """Errors raised by order building, fulfillment, cancellation and purchasing."""

    _default_messages = {
        'ORDER_NOT_FOUND': 'Order not found',
        'LINE_NOT_FOUND': 'Order line not found',
        'PURCHASE_NOT_FOUND': 'Purchase order not found',
        'ITEM_NOT_FOUND': 'Catalog item not found',
        'EMPTY_ORDER': 'Order has no resolvable lines',
        'INVALID_QUANTITY': 'Quantity must be positive',
        'INVALID_STATUS': 'Invalid status for this operation',
        'INVALID_KIND': 'Operation does not apply to this kind of line',
    }
