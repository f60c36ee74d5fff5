"""
Order building — from checkout input to a committed order.

Two phases:

    draft = orders.build(tenant, customer, lines, ...)   # reads only
    result = orders.commit(draft, user=seller)            # writes

build() resolves the catalog in one batch, explodes kits and produces an
in-memory draft graph: every line gets a synthetic key ("line-0",
"line-1", ...) before anything is written, and kit children point to
their parent by key. commit() writes the header, then the lines in draft
order (parents always precede their children), mapping each key to the
real row as it is created, then the sale movements and the pending
flags, all in one transaction. Financial records and process instances
are best-effort and reported as StepResults.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from orderman.adapters import get_financial_backend, get_process_backend
from orderman.conf import orderman_settings
from orderman.exceptions import OrderError
from orderman.models.enums import FulfillmentStatus, ItemKind, MovementType, OrderStatus
from orderman.models.order import Order, OrderLine
from orderman.money import HUNDRED, ZERO, as_decimal, round_money, round_qty
from orderman.protocols.financial import PaymentSplit
from orderman.results import CheckoutResult, StepResult
from orderman.services.catalog import CatalogResolver
from orderman.services.fulfillment import classify
from orderman.services.ledger import StockLedger, lock_items

logger = logging.getLogger('orderman')

MIXED_PAYMENT = 'mixed'


# ══════════════════════════════════════════════════════════════
# DRAFT GRAPH
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LineInput:
    """One requested line. unit_price None = catalog sell price."""

    item_id: int
    quantity: Decimal
    unit_price: Decimal | None = None
    discount_amount: Decimal | None = None


@dataclass
class DraftLine:
    """A line not yet persisted, identified by its synthetic key."""

    key: str
    item_id: int
    kind: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    cost_price: Decimal
    discount_amount: Decimal = ZERO
    commission_percent: Decimal = ZERO
    track_stock: bool = False
    requires_separation: bool = False
    requires_delivery: bool = False
    requires_scheduling: bool = False
    unit_id: str = ''
    service_type_id: str = ''
    is_composition_parent: bool = False
    parent_key: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return round_money(self.unit_price * self.quantity - self.discount_amount)

    @property
    def commission_amount(self) -> Decimal:
        return round_money(self.subtotal * self.commission_percent / HUNDRED)

    @property
    def moves_stock(self) -> bool:
        return (
            not self.is_composition_parent
            and self.kind == ItemKind.PRODUCT
            and self.track_stock
        )


@dataclass
class OrderDraft:
    """Header figures plus the line graph, ready to commit."""

    tenant_id: str
    customer_id: str
    lines: list[DraftLine]
    subtotal: Decimal
    discount_amount: Decimal
    discount_percent: Decimal
    total: Decimal
    payment_method: str
    payments: list[PaymentSplit]
    partner_id: str = ''
    paid: bool = True
    dropped_item_ids: list = field(default_factory=list)

    def children_of(self, key: str) -> list[DraftLine]:
        return [line for line in self.lines if line.parent_key == key]


def compute_subtotal(lines) -> Decimal:
    """
    Kit price override.

    A composition parent priced above zero carries the bundle price and
    replaces the sum of its components; otherwise the component lines
    make up the subtotal.
    """
    child_sum = sum((line.subtotal for line in lines if not line.is_composition_parent), ZERO)
    parent_sum = sum((line.subtotal for line in lines if line.is_composition_parent), ZERO)
    return parent_sum if parent_sum > 0 else child_sum


def compute_discount(subtotal: Decimal, percent=None, amount=None) -> Decimal:
    """Explicit amount wins; otherwise percent of the subtotal."""
    if amount is not None:
        return round_money(amount)
    return round_money(subtotal * as_decimal(percent) / HUNDRED)


# ══════════════════════════════════════════════════════════════
# BUILDER
# ══════════════════════════════════════════════════════════════


class OrderBuilder:
    """Order creation methods."""

    @classmethod
    def build(cls, tenant_id, customer_id, lines, *, discount_percent=None,
              discount_amount=None, payment_method='', partner_id='') -> OrderDraft:
        """
        Build the draft graph. Reads only.

        Args:
            lines: LineInput list (dicts with the same keys are accepted)
            payment_method: Method name, or a list of PaymentSplit

        Raises:
            OrderError('INVALID_QUANTITY'): A quantity <= 0 (after rounding to 3 places)
            OrderError('ITEM_NOT_FOUND'): Malformed item id, or unknown item
                and REJECT_UNKNOWN_ITEMS
            OrderError('EMPTY_ORDER'): Nothing left to sell
        """
        inputs = [cls._as_input(line) for line in lines]
        for line_input in inputs:
            if line_input.quantity <= 0:
                raise OrderError('INVALID_QUANTITY', item_id=line_input.item_id,
                                 requested=line_input.quantity)

        catalog = CatalogResolver.resolve(tenant_id, [i.item_id for i in inputs])

        draft_lines: list[DraftLine] = []
        dropped = []

        def next_key() -> str:
            return f"line-{len(draft_lines)}"

        for line_input in inputs:
            item = catalog.get(line_input.item_id)
            if item is None:
                if orderman_settings.REJECT_UNKNOWN_ITEMS:
                    raise OrderError('ITEM_NOT_FOUND', item_id=line_input.item_id, tenant_id=tenant_id)
                dropped.append(line_input.item_id)
                logger.warning(
                    "order.item_dropped",
                    extra={"tenant_id": tenant_id, "item_id": line_input.item_id},
                )
                continue

            unit_price = (
                as_decimal(line_input.unit_price)
                if line_input.unit_price is not None else item.sell_price
            )
            discount = as_decimal(line_input.discount_amount)

            if item.is_composition:
                # Display-only parent: no cost, no commission, no flags
                parent = DraftLine(
                    key=next_key(),
                    item_id=item.pk,
                    kind=item.kind,
                    description=item.name,
                    quantity=line_input.quantity,
                    unit_price=unit_price,
                    cost_price=ZERO,
                    discount_amount=discount,
                    unit_id=item.unit_id,
                    is_composition_parent=True,
                )
                draft_lines.append(parent)

                for child in CatalogResolver.explode(tenant_id, item, line_input.quantity):
                    draft_lines.append(DraftLine(
                        key=next_key(),
                        item_id=child.item_id,
                        kind=child.kind,
                        description=child.name,
                        quantity=round_qty(child.quantity),
                        unit_price=as_decimal(child.sell_price),
                        cost_price=as_decimal(child.cost_price),
                        commission_percent=as_decimal(child.commission_percent),
                        track_stock=child.track_stock,
                        requires_separation=child.requires_separation,
                        requires_delivery=child.requires_delivery,
                        requires_scheduling=child.requires_scheduling,
                        unit_id=child.unit_id or '',
                        parent_key=parent.key,
                    ))
                continue

            draft_lines.append(DraftLine(
                key=next_key(),
                item_id=item.pk,
                kind=item.kind,
                description=item.name,
                quantity=line_input.quantity,
                unit_price=unit_price,
                cost_price=item.current_cost,
                discount_amount=discount,
                commission_percent=item.commission_percent,
                track_stock=item.track_stock,
                requires_separation=item.requires_separation,
                requires_delivery=item.requires_delivery,
                requires_scheduling=item.requires_scheduling,
                unit_id=item.unit_id,
                service_type_id=item.service_type_id,
            ))

        if not draft_lines:
            raise OrderError('EMPTY_ORDER', tenant_id=tenant_id, dropped=dropped)

        subtotal = compute_subtotal(draft_lines)
        discount_value = compute_discount(subtotal, discount_percent, discount_amount)
        total = max(ZERO, subtotal - discount_value)

        method, payments, paid = cls._payments(payment_method, total)

        return OrderDraft(
            tenant_id=tenant_id,
            customer_id=str(customer_id),
            lines=draft_lines,
            subtotal=subtotal,
            discount_amount=discount_value,
            discount_percent=as_decimal(discount_percent),
            total=total,
            payment_method=method,
            payments=payments,
            partner_id=partner_id or '',
            paid=paid,
            dropped_item_ids=dropped,
        )

    @classmethod
    def commit(cls, draft: OrderDraft, user=None, notes='') -> CheckoutResult:
        """
        Persist a draft and run the best-effort side effects.

        Header, lines, sale movements and pending flags are written in
        one transaction; a missing item on a stock movement aborts it.
        Financial records and process instances run afterwards and
        never roll the order back.
        """
        now = timezone.now()

        with transaction.atomic():
            order = Order.objects.create(
                tenant_id=draft.tenant_id,
                customer_id=draft.customer_id,
                partner_id=draft.partner_id,
                sold_by=user,
                subtotal=draft.subtotal,
                discount_amount=draft.discount_amount,
                discount_percent=draft.discount_percent,
                tax_amount=ZERO,
                total=draft.total,
                status=OrderStatus.COMPLETED,
                payment_method=draft.payment_method,
                paid_at=now if draft.paid else None,
                notes=notes or '',
            )

            # Stock rows locked up front, in pk order
            lock_items(draft.tenant_id, {line.item_id for line in draft.lines if line.moves_stock})

            rows: dict[str, OrderLine] = {}
            completed_keys = set()
            pending_products = False
            pending_services = False

            for sort_order, draft_line in enumerate(draft.lines):
                state = classify(draft_line)
                if state.fulfillment_status == FulfillmentStatus.COMPLETED:
                    completed_keys.add(draft_line.key)
                pending_products = pending_products or state.pending_product
                pending_services = pending_services or state.pending_service

                line = OrderLine.objects.create(
                    order=order,
                    item_id=draft_line.item_id,
                    kind=draft_line.kind,
                    description=draft_line.description[:255],
                    quantity=draft_line.quantity,
                    unit_id=draft_line.unit_id,
                    unit_price=draft_line.unit_price,
                    cost_price=draft_line.cost_price,
                    discount_amount=draft_line.discount_amount,
                    subtotal=draft_line.subtotal,
                    commission_percent=draft_line.commission_percent,
                    commission_amount=draft_line.commission_amount,
                    separation_status=state.separation_status,
                    delivery_status=state.delivery_status,
                    fulfillment_status=state.fulfillment_status,
                    parent=rows[draft_line.parent_key] if draft_line.parent_key else None,
                    is_composition_parent=draft_line.is_composition_parent,
                    sort_order=sort_order,
                )
                rows[draft_line.key] = line

                if draft_line.moves_stock:
                    StockLedger.record_movement(
                        draft.tenant_id, draft_line.item_id, MovementType.SALE,
                        -draft_line.quantity,
                        order=order, order_line=line,
                        reason=f"Order #{order.pk}", user=user,
                    )

            # Kits whose components are all done at sale time
            for draft_line in draft.lines:
                if not draft_line.is_composition_parent:
                    continue
                if all(child.key in completed_keys for child in draft.children_of(draft_line.key)):
                    parent = rows[draft_line.key]
                    parent.fulfillment_status = FulfillmentStatus.COMPLETED
                    parent.save(update_fields=['fulfillment_status'])

            if pending_products or pending_services:
                order.has_pending_products = pending_products
                order.has_pending_services = pending_services
                order.save(update_fields=['has_pending_products', 'has_pending_services', 'updated_at'])

        lines = list(rows.values())
        result = CheckoutResult(order=order, lines=lines, dropped_item_ids=list(draft.dropped_item_ids))

        logger.info(
            "order.created",
            extra={
                "tenant_id": order.tenant_id,
                "order_id": order.pk,
                "lines": len(lines),
                "total": str(order.total),
                "pending_products": order.has_pending_products,
                "pending_services": order.has_pending_services,
            },
        )

        result.steps.append(cls._record_financials(order, lines, draft.payments))
        result.steps.extend(cls._start_processes(order, draft, rows))

        result.pending_scheduling = [
            line for line in lines
            if line.kind == ItemKind.SERVICE
            and not line.is_composition_parent
            and line.fulfillment_status == FulfillmentStatus.PENDING
        ]
        return result

    @classmethod
    def checkout(cls, tenant_id, customer_id, lines, *, discount_percent=None,
                 discount_amount=None, payment_method='', partner_id='',
                 user=None, notes='') -> CheckoutResult:
        """
        Build and commit an order in one call.

        Usage:
            result = orders.checkout(
                'tenant-1', customer.pk,
                [LineInput(item_id=shampoo.pk, quantity=Decimal('2'))],
                payment_method='pix',
            )
            result.order.total
            result.failed_steps  # best-effort steps that did not succeed
        """
        draft = cls.build(
            tenant_id, customer_id, lines,
            discount_percent=discount_percent, discount_amount=discount_amount,
            payment_method=payment_method, partner_id=partner_id,
        )
        return cls.commit(draft, user=user, notes=notes)

    # ══════════════════════════════════════════════════════════════
    # BEST-EFFORT STEPS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _record_financials(cls, order, lines, payments) -> StepResult:
        name = "financial.record_sale"
        try:
            records = get_financial_backend().record_sale(order, lines, payments)
            if records.invoice_id:
                order.invoice_id = str(records.invoice_id)
                order.save(update_fields=['invoice_id', 'updated_at'])
            return StepResult.success(
                name,
                records.invoice_id,
                records.receivable_id,
                *records.payment_ids,
                records.earning_id,
            )
        except Exception as exc:
            logger.exception(
                "order.step_failed",
                extra={"order_id": order.pk, "step": name},
            )
            return StepResult.failure(name, exc)

    @classmethod
    def _start_processes(cls, order, draft, rows) -> list[StepResult]:
        steps = []
        for draft_line in draft.lines:
            if not (
                draft_line.kind == ItemKind.SERVICE
                and draft_line.requires_scheduling
                and draft_line.service_type_id
                and not draft_line.is_composition_parent
            ):
                continue

            line = rows[draft_line.key]
            name = f"process.create:{line.pk}"
            try:
                instance_id = get_process_backend().create_process_instance(
                    draft_line.service_type_id, order, line,
                )
                if instance_id:
                    line.process_instance_id = str(instance_id)
                    line.save(update_fields=['process_instance_id'])
                steps.append(StepResult.success(name, instance_id))
            except Exception as exc:
                logger.warning(
                    "order.step_failed",
                    extra={"order_id": order.pk, "line_id": line.pk, "step": name, "error": str(exc)},
                )
                steps.append(StepResult.failure(name, exc))
        return steps

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _as_input(cls, line) -> LineInput:
        if isinstance(line, LineInput):
            line_input = line
        else:
            line_input = LineInput(**line)
        return LineInput(
            item_id=CatalogResolver.item_key(line_input.item_id),
            quantity=round_qty(line_input.quantity),
            unit_price=line_input.unit_price,
            discount_amount=line_input.discount_amount,
        )

    @classmethod
    def _payments(cls, payment_method, total) -> tuple[str, list[PaymentSplit], bool]:
        """(stored method, payment splits, paid?)"""
        if isinstance(payment_method, (list, tuple)):
            splits = [
                split if isinstance(split, PaymentSplit)
                else PaymentSplit(method=split['method'], amount=as_decimal(split['amount']))
                for split in payment_method
            ]
            return MIXED_PAYMENT, splits, True

        method = payment_method or ''
        if method == orderman_settings.CREDIT_PAYMENT_METHOD:
            return method, [], False
        return method, [PaymentSplit(method=method, amount=total)], True
