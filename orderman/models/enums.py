"""
Enums for Orderman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ItemKind(models.TextChoices):
    """Kind of catalog item."""
    PRODUCT = 'product', _('Product')   # Physical good, may track stock
    SERVICE = 'service', _('Service')   # Work performed, may need scheduling


class OrderStatus(models.TextChoices):
    """Order lifecycle status."""
    OPEN = 'open', _('Open')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')
    REFUNDED = 'refunded', _('Refunded')
    PARTIAL_REFUND = 'partial_refund', _('Partially refunded')


class SeparationStatus(models.TextChoices):
    """Physical picking/packing status of a product line."""
    NOT_REQUIRED = 'not_required', _('Not required')
    PENDING = 'pending', _('Pending')
    IN_PROGRESS = 'in_progress', _('In progress')
    READY = 'ready', _('Ready')
    DELIVERED = 'delivered', _('Delivered')
    CANCELLED = 'cancelled', _('Cancelled')


class DeliveryStatus(models.TextChoices):
    """Delivery status of a product line."""
    NOT_REQUIRED = 'not_required', _('Not required')
    PENDING = 'pending', _('Pending')
    IN_TRANSIT = 'in_transit', _('In transit')
    DELIVERED = 'delivered', _('Delivered')
    FAILED = 'failed', _('Failed')
    CANCELLED = 'cancelled', _('Cancelled')


class FulfillmentStatus(models.TextChoices):
    """Aggregate completion state of an order line."""
    PENDING = 'pending', _('Pending')
    IN_PROGRESS = 'in_progress', _('In progress')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')


class MovementType(models.TextChoices):
    """Type of stock movement."""
    SALE = 'sale', _('Sale')
    PURCHASE = 'purchase', _('Purchase')
    ADJUSTMENT = 'adjustment', _('Adjustment')
    RETURN = 'return', _('Return')
    TRANSFER = 'transfer', _('Transfer')
    SEPARATION = 'separation', _('Separation')
    CORRECTION = 'correction', _('Correction')


class PurchaseStatus(models.TextChoices):
    """Purchase order lifecycle status."""
    DRAFT = 'draft', _('Draft')
    ORDERED = 'ordered', _('Ordered')
    PARTIAL_RECEIVED = 'partial_received', _('Partially received')
    RECEIVED = 'received', _('Received')
    CANCELLED = 'cancelled', _('Cancelled')


# Sub-statuses that count as "done" for the fulfillment predicate
SEPARATION_DONE = frozenset({
    SeparationStatus.NOT_REQUIRED,
    SeparationStatus.READY,
    SeparationStatus.DELIVERED,
})
DELIVERY_DONE = frozenset({
    DeliveryStatus.NOT_REQUIRED,
    DeliveryStatus.DELIVERED,
})
