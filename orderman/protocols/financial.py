"""
Financial Backend Protocol.

Defines the interface Orderman uses to hand off financial side effects:
invoices, accounts receivable, payments, partner earnings and
accounts payable. Every call is best-effort from Orderman's point of
view: failures are logged and reported, never propagated.

Vocabulary mapping (Orderman → financial system):
    record_sale()      →  invoice + invoice items + receivable + payments + earning
    cancel_sale()      →  invoice.status = cancelled, receivables cancelled
    create_payables()  →  one payable per installment
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from orderman.models import Order, OrderLine, PurchaseOrder


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PaymentSplit:
    """One payment of a (possibly split) checkout."""

    method: str
    amount: Decimal


@dataclass(frozen=True)
class FinancialRecords:
    """Ids of the financial records created for an order."""

    invoice_id: str | None = None
    receivable_id: str | None = None
    payment_ids: tuple[str, ...] = field(default_factory=tuple)
    earning_id: str | None = None


@dataclass(frozen=True)
class PayableInstallment:
    """One accounts-payable installment of a received purchase."""

    number: int
    count: int
    due_date: date
    amount: Decimal


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class FinancialBackend(Protocol):
    """
    Interface for the financial ledger service.

    Implementations:
        - NoopFinancialBackend: records nothing (development/tests)
    """

    def record_sale(
        self,
        order: Order,
        lines: list[OrderLine],
        payments: list[PaymentSplit],
    ) -> FinancialRecords:
        """
        Create invoice, receivable, payments and partner earning.

        Args:
            order: The committed order
            lines: Its lines (composition parents included; implementations
                   usually invoice only non-parent lines)
            payments: Payment splits (empty when sold on credit)

        Returns:
            Ids of the created records
        """
        ...

    def cancel_sale(self, order: Order) -> None:
        """
        Cancel the invoice and receivables linked to an order.

        Args:
            order: The cancelled order
        """
        ...

    def create_payables(
        self,
        purchase: PurchaseOrder,
        installments: list[PayableInstallment],
    ) -> list[str]:
        """
        Create accounts payable for a fully received purchase.

        Args:
            purchase: The purchase order
            installments: Due dates and amounts

        Returns:
            Ids of the created payables
        """
        ...
