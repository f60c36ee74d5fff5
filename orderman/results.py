"""
Result types returned by Orderman operations.

Primary records (order, lines, stock movements) either exist or the
operation raised. Secondary side effects are best-effort and reported
as one StepResult each, so repair jobs can find what is missing:

    result = orders.checkout(...)
    for step in result.failed_steps:
        logger.warning("missing %s for order %s", step.name, result.order.pk)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from orderman.models import Order, OrderLine, PurchaseOrder


@dataclass(frozen=True)
class StepResult:
    """Outcome of one best-effort step."""

    name: str  # e.g. "financial.record_sale", "process.create:line-3"
    ok: bool
    record_ids: tuple[str, ...] = ()
    error: str | None = None

    @classmethod
    def success(cls, name: str, *record_ids: Any) -> StepResult:
        return cls(name=name, ok=True, record_ids=tuple(str(r) for r in record_ids if r))

    @classmethod
    def failure(cls, name: str, exc: BaseException) -> StepResult:
        return cls(name=name, ok=False, error=f"{type(exc).__name__}: {exc}")


@dataclass
class _StepsMixin:
    steps: list[StepResult] = field(default_factory=list)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]

    @property
    def ok(self) -> bool:
        """True when every best-effort step succeeded."""
        return not self.failed_steps


@dataclass
class CheckoutResult(_StepsMixin):
    """Result of creating an order."""

    order: Order | None = None
    lines: list[OrderLine] = field(default_factory=list)
    pending_scheduling: list[OrderLine] = field(default_factory=list)
    dropped_item_ids: list[Any] = field(default_factory=list)


@dataclass
class CancelResult(_StepsMixin):
    """Result of cancelling an order."""

    order: Order | None = None
    returned_line_ids: list[int] = field(default_factory=list)


@dataclass
class ReceiveResult(_StepsMixin):
    """Result of receiving (part of) a purchase order."""

    purchase: PurchaseOrder | None = None
    status: str = ''
    received_line_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class Correction:
    """One cache correction made by reconciliation."""

    item_id: int
    cached: Decimal
    computed: Decimal

    @property
    def diff(self) -> Decimal:
        return self.computed - self.cached


@dataclass
class ReconcileResult:
    """Result of reconciling cached quantities with the ledger."""

    checked: int = 0
    corrections: list[Correction] = field(default_factory=list)

    @property
    def corrected(self) -> int:
        return len(self.corrections)
