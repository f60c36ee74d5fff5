"""
Tests for order building and checkout.
"""

from decimal import Decimal

import pytest

from orderman import OrderError, orders
from orderman.models import (
    DeliveryStatus,
    FulfillmentStatus,
    MovementType,
    OrderStatus,
    SeparationStatus,
    StockMovement,
)
from orderman.protocols.financial import PaymentSplit
from orderman.services.builder import LineInput


pytestmark = pytest.mark.django_db


def line(item, quantity='1', **kwargs):
    return LineInput(item_id=item.pk, quantity=Decimal(quantity), **kwargs)


class TestTotals:
    """Subtotal, discount and total rules."""

    def test_single_line(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo, '2')])
        order = result.order

        assert order.subtotal == Decimal('60.00')
        assert order.total == Decimal('60.00')
        assert order.tax_amount == Decimal('0')
        assert order.status == OrderStatus.COMPLETED

    def test_price_and_line_discount_override(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [
            line(shampoo, '2', unit_price=Decimal('25.00'), discount_amount=Decimal('5.00')),
        ])

        assert result.lines[0].subtotal == Decimal('45.00')
        assert result.order.subtotal == Decimal('45.00')

    def test_discount_percent(self, tenant, shampoo, conditioner):
        result = orders.checkout(
            tenant, 'cust-1', [line(shampoo), line(conditioner)], discount_percent=Decimal('10'),
        )

        assert result.order.discount_amount == Decimal('6.00')
        assert result.order.total == Decimal('54.00')

    def test_discount_amount_wins_over_percent(self, tenant, shampoo):
        result = orders.checkout(
            tenant, 'cust-1', [line(shampoo)],
            discount_percent=Decimal('50'), discount_amount=Decimal('2.00'),
        )

        assert result.order.discount_amount == Decimal('2.00')
        assert result.order.total == Decimal('28.00')

    def test_total_never_negative(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo)], discount_amount=Decimal('100'))

        assert result.order.total == Decimal('0')

    def test_commission_per_line(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo, '2')])

        assert result.lines[0].commission_amount == Decimal('6.00')


class TestKitPricing:
    """Composition parent price overrides the component sum."""

    def test_parent_price_overrides_children(self, tenant, shampoo, conditioner, make_kit):
        kit = make_kit('50.00', (shampoo, '1'), (conditioner, '1'))

        result = orders.checkout(tenant, 'cust-1', [line(kit)])

        assert result.order.subtotal == Decimal('50.00')

    def test_zero_parent_price_uses_children(self, tenant, shampoo, conditioner, make_kit):
        kit = make_kit('0', (shampoo, '1'), (conditioner, '1'))

        result = orders.checkout(tenant, 'cust-1', [line(kit)])

        assert result.order.subtotal == Decimal('60.00')

    def test_kit_lines(self, tenant, shampoo, consulting, make_kit):
        kit = make_kit('50.00', (shampoo, '2'), (consulting, '1'))

        result = orders.checkout(tenant, 'cust-1', [line(kit, '3')])
        parent, first, second = result.lines

        assert parent.is_composition_parent
        assert parent.cost_price == Decimal('0')
        assert parent.commission_amount == Decimal('0')
        assert first.parent_id == parent.pk
        assert second.parent_id == parent.pk
        assert first.quantity == Decimal('6')
        assert second.quantity == Decimal('3')

    def test_kit_children_move_stock(self, tenant, shampoo, conditioner, make_kit, stock_in):
        stock_in(shampoo, '10', '8.00')
        kit = make_kit('50.00', (shampoo, '2'), (conditioner, '1'))

        orders.checkout(tenant, 'cust-1', [line(kit)])
        shampoo.refresh_from_db()
        conditioner.refresh_from_db()

        assert shampoo.stock_quantity == Decimal('8')
        assert conditioner.stock_quantity == Decimal('-1')
        assert not StockMovement.objects.filter(item__is_composition=True).exists()

    def test_kit_of_completed_children_is_completed(self, tenant, shampoo, conditioner, make_kit):
        kit = make_kit('50.00', (shampoo, '1'), (conditioner, '1'))

        result = orders.checkout(tenant, 'cust-1', [line(kit)])

        assert result.lines[0].fulfillment_status == FulfillmentStatus.COMPLETED


class TestDraftGraph:
    """orders.build() produces a keyed graph without writing."""

    def test_synthetic_keys(self, tenant, shampoo, conditioner, consulting, make_kit):
        kit = make_kit('50.00', (shampoo, '1'), (conditioner, '1'))

        draft = orders.build(tenant, 'cust-1', [line(consulting), line(kit)])

        assert [d.key for d in draft.lines] == ['line-0', 'line-1', 'line-2', 'line-3']
        assert [d.parent_key for d in draft.lines] == [None, None, 'line-1', 'line-1']
        assert [c.key for c in draft.children_of('line-1')] == ['line-2', 'line-3']

    def test_build_does_not_write(self, tenant, shampoo):
        orders.build(tenant, 'cust-1', [line(shampoo)])

        assert not StockMovement.objects.exists()
        assert not orders.movements(tenant).exists()

    def test_commit_keeps_draft_order(self, tenant, shampoo, conditioner, consulting, make_kit):
        kit = make_kit('50.00', (shampoo, '1'), (conditioner, '1'))
        draft = orders.build(tenant, 'cust-1', [line(consulting), line(kit)])

        result = orders.commit(draft)

        assert [ln.item_id for ln in result.lines] == [d.item_id for d in draft.lines]
        assert [ln.sort_order for ln in result.lines] == [0, 1, 2, 3]


class TestUnknownItems:
    """Items missing from the tenant catalog."""

    def test_dropped_by_default(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [
            line(shampoo),
            LineInput(item_id=999999, quantity=Decimal('1')),
        ])

        assert result.dropped_item_ids == [999999]
        assert len(result.lines) == 1

    def test_rejected_when_configured(self, tenant, shampoo, settings):
        settings.ORDERMAN = {**settings.ORDERMAN, 'REJECT_UNKNOWN_ITEMS': True}

        with pytest.raises(OrderError) as exc:
            orders.checkout(tenant, 'cust-1', [
                line(shampoo),
                LineInput(item_id=999999, quantity=Decimal('1')),
            ])

        assert exc.value.code == 'ITEM_NOT_FOUND'

    def test_string_item_ids_resolved(self, tenant, shampoo, consulting):
        result = orders.checkout(tenant, 'cust-1', [
            {'item_id': str(shampoo.pk), 'quantity': '1'},
            {'item_id': consulting.pk, 'quantity': '1'},
        ])
        shampoo.refresh_from_db()

        assert result.dropped_item_ids == []
        assert [ln.item_id for ln in result.lines] == [shampoo.pk, consulting.pk]
        assert result.order.total == Decimal('130.00')
        assert shampoo.stock_quantity == Decimal('-1')

    def test_malformed_item_id(self, tenant, shampoo):
        with pytest.raises(OrderError) as exc:
            orders.checkout(tenant, 'cust-1', [{'item_id': 'shampoo', 'quantity': '1'}])

        assert exc.value.code == 'ITEM_NOT_FOUND'

    def test_other_tenant_item_is_unknown(self, shampoo):
        with pytest.raises(OrderError) as exc:
            orders.checkout('other', 'cust-1', [line(shampoo)])

        assert exc.value.code == 'EMPTY_ORDER'

    def test_empty_order(self, tenant):
        with pytest.raises(OrderError) as exc:
            orders.checkout(tenant, 'cust-1', [])

        assert exc.value.code == 'EMPTY_ORDER'

    def test_non_positive_quantity(self, tenant, shampoo):
        with pytest.raises(OrderError) as exc:
            orders.checkout(tenant, 'cust-1', [line(shampoo, '0')])

        assert exc.value.code == 'INVALID_QUANTITY'


class TestPendingFlags:
    """Initial classification written at checkout."""

    def test_simple_product_completed(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo)])

        assert result.lines[0].fulfillment_status == FulfillmentStatus.COMPLETED
        assert not result.order.has_pending_products
        assert not result.order.has_pending_services

    def test_product_with_separation_and_delivery(self, tenant, sofa):
        result = orders.checkout(tenant, 'cust-1', [line(sofa)])
        sofa_line = result.lines[0]

        assert sofa_line.separation_status == SeparationStatus.PENDING
        assert sofa_line.delivery_status == DeliveryStatus.PENDING
        assert sofa_line.fulfillment_status == FulfillmentStatus.PENDING
        assert result.order.has_pending_products

    def test_scheduled_service_pending(self, tenant, haircut, consulting):
        result = orders.checkout(tenant, 'cust-1', [line(haircut), line(consulting)])

        assert result.order.has_pending_services
        assert result.pending_scheduling == [result.lines[0]]
        assert result.lines[1].fulfillment_status == FulfillmentStatus.COMPLETED

    def test_sale_movement_for_tracked_products_only(self, tenant, shampoo, sofa, consulting):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo, '2'), line(sofa), line(consulting)])

        movements = list(StockMovement.objects.filter(order=result.order))
        assert len(movements) == 1
        assert movements[0].movement_type == MovementType.SALE
        assert movements[0].quantity == Decimal('-2')
        assert movements[0].order_line_id == result.lines[0].pk


class TestPayments:
    """Payment method, splits and paid_at."""

    def test_single_method_paid(self, tenant, shampoo, financial):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo)], payment_method='pix')

        assert result.order.payment_method == 'pix'
        assert result.order.paid_at is not None
        assert financial.sales[0][2] == [PaymentSplit(method='pix', amount=Decimal('30.00'))]

    def test_credit_sale_not_paid(self, tenant, shampoo, financial):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo)], payment_method='a_prazo')

        assert result.order.paid_at is None
        assert financial.sales[0][2] == []

    def test_split_payment_is_mixed(self, tenant, shampoo):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo)], payment_method=[
            PaymentSplit('cash', Decimal('10.00')),
            {'method': 'card', 'amount': '20.00'},
        ])

        assert result.order.payment_method == 'mixed'


class TestBestEffortSteps:
    """Collaborator failures never roll the order back."""

    def test_financial_records_linked(self, tenant, shampoo, financial):
        result = orders.checkout(tenant, 'cust-1', [line(shampoo)], payment_method='pix')
        result.order.refresh_from_db()

        assert result.ok
        assert result.order.invoice_id == f"inv-{result.order.pk}"
        step = result.steps[0]
        assert step.name == 'financial.record_sale'
        assert f"inv-{result.order.pk}" in step.record_ids

    def test_financial_failure_reported(self, tenant, shampoo, stock_in, failing_financial):
        stock_in(shampoo, '5', '8.00')

        result = orders.checkout(tenant, 'cust-1', [line(shampoo, '2')])
        shampoo.refresh_from_db()

        assert not result.ok
        assert [s.name for s in result.failed_steps] == ['financial.record_sale']
        assert 'financial service unavailable' in result.failed_steps[0].error
        assert result.order.pk is not None
        assert result.order.invoice_id == ''
        assert shampoo.stock_quantity == Decimal('3')

    def test_process_instance_linked(self, tenant, haircut, process):
        result = orders.checkout(tenant, 'cust-1', [line(haircut)])
        haircut_line = result.lines[0]
        haircut_line.refresh_from_db()

        assert haircut_line.process_instance_id == f"proc-{haircut_line.pk}"
        assert process.created == [('hair', result.order.pk, haircut_line.pk)]
        assert f"process.create:{haircut_line.pk}" in [s.name for s in result.steps]

    def test_process_failure_reported(self, tenant, haircut, failing_process):
        result = orders.checkout(tenant, 'cust-1', [line(haircut)])

        assert [s.name for s in result.failed_steps] == [f"process.create:{result.lines[0].pk}"]
        assert result.lines[0].process_instance_id == ''
