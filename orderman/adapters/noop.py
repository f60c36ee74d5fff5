"""
Noop backends — stub adapters for development and testing.

These adapters implement the collaborator protocols with trivial
defaults:
- NoopFinancialBackend records nothing and returns empty ids
- NoopProcessBackend never starts a process

Usage in settings.py:
    ORDERMAN = {
        "FINANCIAL_BACKEND": "orderman.adapters.noop.NoopFinancialBackend",
        "PROCESS_BACKEND": "orderman.adapters.noop.NoopProcessBackend",
    }

WARNING: With the noop financial backend no invoice, receivable or
payable is ever created. Do NOT use in production.
"""

from __future__ import annotations

import logging

from orderman.protocols.financial import FinancialRecords

logger = logging.getLogger(__name__)


class NoopFinancialBackend:
    """
    No-operation financial backend.

    Implements the ``FinancialBackend`` protocol without any external
    dependencies, making it suitable for:

    - Local development without a running financial service
    - Tests that only exercise stock and fulfillment
    """

    def record_sale(self, order, lines, payments) -> FinancialRecords:
        """Record nothing. Returns empty FinancialRecords."""
        logger.debug("noop financial: record_sale order=%s", order.pk)
        return FinancialRecords()

    def cancel_sale(self, order) -> None:
        """Cancel nothing."""
        logger.debug("noop financial: cancel_sale order=%s", order.pk)

    def create_payables(self, purchase, installments) -> list[str]:
        """Create nothing. Returns an empty list."""
        logger.debug(
            "noop financial: create_payables purchase=%s installments=%d",
            purchase.pk, len(installments),
        )
        return []


class NoopProcessBackend:
    """No-operation process backend. Never starts a process."""

    def create_process_instance(self, service_type_id, order, line) -> str | None:
        """Start nothing. Returns None."""
        return None
