"""
Orderman configuration.

Usage in settings.py:
    ORDERMAN = {
        "COMPOSITION_EXPANDER": "orderman.adapters.catalog.CatalogCompositionExpander",
        "FINANCIAL_BACKEND": "billing.adapters.OrdermanFinancialBackend",
        "PROCESS_BACKEND": "orderman.adapters.noop.NoopProcessBackend",
        "REJECT_UNKNOWN_ITEMS": False,
        "RECONCILE_TOLERANCE": "0.001",
    }
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings


@dataclass
class OrdermanSettings:
    """Orderman configuration settings."""

    # Collaborator backends (dotted paths)
    COMPOSITION_EXPANDER: str = "orderman.adapters.catalog.CatalogCompositionExpander"
    FINANCIAL_BACKEND: str = "orderman.adapters.noop.NoopFinancialBackend"
    PROCESS_BACKEND: str = "orderman.adapters.noop.NoopProcessBackend"

    # Reject the whole order when an item id is not in the catalog
    # (False = drop the line and log it)
    REJECT_UNKNOWN_ITEMS: bool = False

    # Cache drift below this is ignored by reconciliation
    RECONCILE_TOLERANCE: Decimal = Decimal("0.001")

    # Payment method meaning "sold on credit" (order has no paid_at)
    CREDIT_PAYMENT_METHOD: str = "a_prazo"

    # Default note when cancelling without a reason
    CANCEL_REASON: str = "Order cancelled"

    def __post_init__(self):
        self.RECONCILE_TOLERANCE = Decimal(str(self.RECONCILE_TOLERANCE))


def get_orderman_settings() -> OrdermanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "ORDERMAN", {})
    return OrdermanSettings(**{
        k: v for k, v in user_settings.items()
        if k in OrdermanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_orderman_settings(), name)


orderman_settings = _LazySettings()
