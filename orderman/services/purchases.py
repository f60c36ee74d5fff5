"""
Purchase receiving — supplier orders, partial receipts and payables.

Receiving a line records a `purchase` movement and, unless the line
opts out, re-averages the item cost (CMPM) in the same locked
transaction. When the whole order has arrived, the payable schedule is
handed to the financial backend, best-effort.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import timedelta
from decimal import ROUND_DOWN, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from orderman.adapters import get_financial_backend
from orderman.exceptions import OrderError
from orderman.models.catalog import CatalogItem
from orderman.models.enums import MovementType, PurchaseStatus
from orderman.models.purchase import PurchaseOrder, PurchaseOrderLine
from orderman.money import ZERO, as_decimal, round_money, round_qty
from orderman.protocols.financial import PayableInstallment
from orderman.results import ReceiveResult, StepResult
from orderman.services.catalog import CatalogResolver
from orderman.services.costing import CostValuation
from orderman.services.ledger import lock_items

logger = logging.getLogger('orderman')

_DAYS_RE = re.compile(r'\d+')
_CENT = Decimal('0.01')

INSTALLMENT_INTERVAL_DAYS = 30


@dataclass(frozen=True)
class PurchaseLineInput:
    item_id: int
    quantity: Decimal
    unit_cost: Decimal
    description: str = ''
    update_cost_price: bool = True


def parse_payment_terms(terms) -> list[int]:
    """
    Day offsets from a payment terms string.

        "30/60/90 dias" → [30, 60, 90]
        "30"            → [30]
        "" / None       → [0]  (due on receipt)
    """
    if not terms or not terms.strip():
        return [0]
    days = sorted(int(n) for n in _DAYS_RE.findall(terms))
    return days or [0]


def build_installments(total, *, installments=None, payment_terms='', start=None) -> list[PayableInstallment]:
    """
    Split a purchase total into payable installments.

    installments > 1 gives a monthly schedule (30, 60, 90, ...);
    otherwise the payment terms decide. The total is split evenly,
    rounded down to the cent, and the last installment takes the
    remainder. Nothing to pay → empty list.
    """
    total = as_decimal(total)
    if total <= 0:
        return []

    if installments and installments > 1:
        offsets = [(i + 1) * INSTALLMENT_INTERVAL_DAYS for i in range(installments)]
    else:
        offsets = parse_payment_terms(payment_terms)

    start = start or timezone.localdate()
    count = len(offsets)
    base = (total / count).quantize(_CENT, rounding=ROUND_DOWN)
    remainder = total - base * count

    return [
        PayableInstallment(
            number=i + 1,
            count=count,
            due_date=start + timedelta(days=days),
            amount=base + remainder if i == count - 1 else base,
        )
        for i, days in enumerate(offsets)
    ]


class PurchaseReceiving:
    """Purchase order methods."""

    @classmethod
    def create_purchase(cls, tenant_id, lines, *, supplier_id='', supplier_name='',
                        invoice_number='', discount_amount=None, shipping_cost=None,
                        tax_amount=None, payment_method='', installments=None,
                        payment_terms='', notes='') -> PurchaseOrder:
        """
        Create a draft purchase order.

        total = Σ(quantity × unit_cost) − discount + shipping + tax

        Raises:
            OrderError('EMPTY_ORDER'): No lines
            OrderError('INVALID_QUANTITY'): A quantity <= 0
            OrderError('ITEM_NOT_FOUND'): Item missing for tenant
        """
        inputs = [cls._purchase_line_input(line) for line in lines]
        if not inputs:
            raise OrderError('EMPTY_ORDER', tenant_id=tenant_id)

        items = CatalogItem.objects.for_tenant(tenant_id).in_bulk({i.item_id for i in inputs})
        for line_input in inputs:
            if line_input.quantity <= 0:
                raise OrderError('INVALID_QUANTITY', item_id=line_input.item_id,
                                 requested=line_input.quantity)
            if line_input.item_id not in items:
                raise OrderError('ITEM_NOT_FOUND', item_id=line_input.item_id, tenant_id=tenant_id)

        subtotal = round_money(sum(
            (i.quantity * as_decimal(i.unit_cost) for i in inputs), ZERO,
        ))
        discount = round_money(discount_amount)
        shipping = round_money(shipping_cost)
        tax = round_money(tax_amount)

        with transaction.atomic():
            purchase = PurchaseOrder.objects.create(
                tenant_id=tenant_id,
                supplier_id=supplier_id or '',
                supplier_name=supplier_name or '',
                invoice_number=invoice_number or '',
                subtotal=subtotal,
                discount_amount=discount,
                shipping_cost=shipping,
                tax_amount=tax,
                total=subtotal - discount + shipping + tax,
                status=PurchaseStatus.DRAFT,
                payment_method=payment_method or '',
                installments=installments if installments and installments > 1 else None,
                payment_terms=payment_terms or '',
                notes=notes or '',
            )
            for line_input in inputs:
                quantity = line_input.quantity
                unit_cost = as_decimal(line_input.unit_cost)
                PurchaseOrderLine.objects.create(
                    purchase_order=purchase,
                    item=items[line_input.item_id],
                    description=line_input.description or items[line_input.item_id].name,
                    quantity_ordered=quantity,
                    unit_cost=unit_cost,
                    subtotal=round_money(quantity * unit_cost),
                    update_cost_price=line_input.update_cost_price,
                )

        logger.info(
            "purchase.created",
            extra={"tenant_id": tenant_id, "purchase_id": purchase.pk, "total": str(purchase.total)},
        )
        return purchase

    @classmethod
    def mark_ordered(cls, tenant_id, purchase_id) -> PurchaseOrder:
        """Sent to supplier: draft → ordered."""
        with transaction.atomic():
            purchase = cls._lock_purchase(tenant_id, purchase_id)
            if purchase.status != PurchaseStatus.DRAFT:
                raise OrderError('INVALID_STATUS', purchase_id=purchase.pk, status=purchase.status)
            purchase.status = PurchaseStatus.ORDERED
            purchase.ordered_at = timezone.now()
            purchase.save(update_fields=['status', 'ordered_at', 'updated_at'])

        logger.info("purchase.ordered", extra={"tenant_id": tenant_id, "purchase_id": purchase.pk})
        return purchase

    @classmethod
    def cancel_purchase(cls, tenant_id, purchase_id) -> PurchaseOrder:
        """
        Cancel a purchase that has not started arriving.

        Raises:
            OrderError('INVALID_STATUS'): Already cancelled or (partly) received
        """
        with transaction.atomic():
            purchase = cls._lock_purchase(tenant_id, purchase_id)
            if purchase.status not in (PurchaseStatus.DRAFT, PurchaseStatus.ORDERED):
                raise OrderError('INVALID_STATUS', purchase_id=purchase.pk, status=purchase.status)
            purchase.status = PurchaseStatus.CANCELLED
            purchase.save(update_fields=['status', 'updated_at'])

        logger.info("purchase.cancelled", extra={"tenant_id": tenant_id, "purchase_id": purchase.pk})
        return purchase

    @classmethod
    def receive_purchase(cls, tenant_id, purchase_id, received, user=None) -> ReceiveResult:
        """
        Receive (part of) a purchase order.

        Args:
            received: Iterable of (line_id, quantity) pairs. Unknown line
                      ids and quantities <= 0 are skipped.

        Returns:
            ReceiveResult with the new status:
            received (every line complete), partial_received (anything
            received so far) or ordered.

        Raises:
            OrderError('PURCHASE_NOT_FOUND'): Purchase missing for tenant
            OrderError('INVALID_STATUS'): Purchase cancelled or already received
        """
        result = ReceiveResult()
        now = timezone.now()

        with transaction.atomic():
            purchase = cls._lock_purchase(tenant_id, purchase_id)
            if purchase.status in (PurchaseStatus.CANCELLED, PurchaseStatus.RECEIVED):
                raise OrderError('INVALID_STATUS', purchase_id=purchase.pk, status=purchase.status)

            lines = {line.pk: line for line in purchase.lines.select_for_update()}

            receipts = []
            for line_id, quantity in received:
                line = lines.get(cls._line_key(line_id))
                quantity = round_qty(quantity)
                if line is not None and quantity > 0:
                    receipts.append((line, quantity))
            lock_items(tenant_id, {line.item_id for line, _ in receipts})

            for line, quantity in receipts:
                line.quantity_received += quantity
                line.received_at = now
                line.save(update_fields=['quantity_received', 'received_at'])

                CostValuation.receive_incoming(
                    tenant_id, line.item_id, quantity, line.unit_cost,
                    movement_type=MovementType.PURCHASE,
                    apply_cost=line.update_cost_price,
                    purchase_order=purchase,
                    purchase_line=line,
                    reference=f"PO {purchase.pk}",
                    user=user,
                )
                result.received_line_ids.append(line.pk)

            all_received = all(line.is_fully_received for line in lines.values())
            if all_received:
                purchase.status = PurchaseStatus.RECEIVED
                purchase.received_at = now
                purchase.received_by = user
            elif any(line.quantity_received > 0 for line in lines.values()):
                purchase.status = PurchaseStatus.PARTIAL_RECEIVED
            else:
                purchase.status = PurchaseStatus.ORDERED
            purchase.save(update_fields=['status', 'received_at', 'received_by', 'updated_at'])

        result.purchase = purchase
        result.status = purchase.status

        logger.info(
            "purchase.received",
            extra={
                "tenant_id": tenant_id,
                "purchase_id": purchase.pk,
                "lines": len(result.received_line_ids),
                "status": purchase.status,
            },
        )

        if all_received:
            result.steps.append(cls._create_payables(purchase))
        return result

    @classmethod
    def _create_payables(cls, purchase) -> StepResult:
        name = "financial.create_payables"
        try:
            installments = build_installments(
                purchase.total,
                installments=purchase.installments,
                payment_terms=purchase.payment_terms,
            )
            payable_ids = []
            if installments:
                payable_ids = get_financial_backend().create_payables(purchase, installments)
            return StepResult.success(name, *payable_ids)
        except Exception as exc:
            logger.warning(
                "purchase.step_failed",
                extra={"purchase_id": purchase.pk, "step": name, "error": str(exc)},
            )
            return StepResult.failure(name, exc)

    @classmethod
    def _purchase_line_input(cls, line) -> PurchaseLineInput:
        line_input = line if isinstance(line, PurchaseLineInput) else PurchaseLineInput(**line)
        return replace(
            line_input,
            item_id=CatalogResolver.item_key(line_input.item_id),
            quantity=round_qty(line_input.quantity),
        )

    @classmethod
    def _line_key(cls, line_id):
        """Line id as the primary key type; None when malformed."""
        try:
            return PurchaseOrderLine._meta.pk.to_python(line_id)
        except ValidationError:
            return None

    @classmethod
    def _lock_purchase(cls, tenant_id, purchase_id) -> PurchaseOrder:
        try:
            return PurchaseOrder.objects.select_for_update().get(pk=purchase_id, tenant_id=tenant_id)
        except PurchaseOrder.DoesNotExist:
            raise OrderError('PURCHASE_NOT_FOUND', purchase_id=purchase_id, tenant_id=tenant_id) from None
