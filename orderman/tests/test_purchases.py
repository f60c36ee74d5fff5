"""
Tests for purchase orders, receiving and payables.
"""

from datetime import date
from decimal import Decimal

import pytest

from orderman import OrderError, orders
from orderman.models import MovementType, PurchaseStatus, StockMovement
from orderman.services.purchases import PurchaseLineInput, build_installments, parse_payment_terms


pytestmark = pytest.mark.django_db


@pytest.fixture
def purchase(tenant, shampoo, conditioner):
    """Ordered PO: 10 shampoo @ 12.00, 4 conditioner @ 5.00."""
    po = orders.create_purchase(tenant, [
        PurchaseLineInput(item_id=shampoo.pk, quantity=Decimal('10'), unit_cost=Decimal('12.00')),
        PurchaseLineInput(item_id=conditioner.pk, quantity=Decimal('4'), unit_cost=Decimal('5.00')),
    ], supplier_name='Beauty Supplies', payment_terms='30/60 dias')
    return orders.mark_ordered(tenant, po.pk)


def po_lines(purchase):
    return list(purchase.lines.order_by('pk'))


class TestPaymentTerms:
    """Tests for parse_payment_terms()."""

    @pytest.mark.parametrize('terms,expected', [
        ('30/60/90 dias', [30, 60, 90]),
        ('30', [30]),
        ('90/30', [30, 90]),
        ('', [0]),
        (None, [0]),
        ('à vista', [0]),
    ])
    def test_parse(self, terms, expected):
        assert parse_payment_terms(terms) == expected


class TestInstallments:
    """Tests for build_installments()."""

    def test_split_with_remainder_on_last(self):
        start = date(2024, 1, 1)

        installments = build_installments(Decimal('100.00'), payment_terms='30/60/90', start=start)

        assert [i.amount for i in installments] == [Decimal('33.33'), Decimal('33.33'), Decimal('33.34')]
        assert [i.due_date for i in installments] == [date(2024, 1, 31), date(2024, 3, 1), date(2024, 3, 31)]
        assert [(i.number, i.count) for i in installments] == [(1, 3), (2, 3), (3, 3)]

    def test_installment_count_wins_over_terms(self):
        installments = build_installments(
            Decimal('90.00'), installments=3, payment_terms='15', start=date(2024, 1, 1),
        )

        assert [i.amount for i in installments] == [Decimal('30.00')] * 3
        assert installments[-1].due_date == date(2024, 3, 31)

    def test_due_on_receipt(self):
        installments = build_installments(Decimal('50.00'), start=date(2024, 1, 1))

        assert len(installments) == 1
        assert installments[0].due_date == date(2024, 1, 1)

    def test_nothing_to_pay(self):
        assert build_installments(Decimal('0')) == []


class TestCreatePurchase:
    """Tests for orders.create_purchase()."""

    def test_totals(self, tenant, shampoo, conditioner):
        po = orders.create_purchase(tenant, [
            {'item_id': shampoo.pk, 'quantity': '10', 'unit_cost': '5.00'},
            {'item_id': conditioner.pk, 'quantity': '4', 'unit_cost': '2.50'},
        ], discount_amount=Decimal('5'), shipping_cost=Decimal('10'), tax_amount=Decimal('3'))

        assert po.status == PurchaseStatus.DRAFT
        assert po.subtotal == Decimal('60.00')
        assert po.total == Decimal('68.00')
        assert [ln.subtotal for ln in po_lines(po)] == [Decimal('50.00'), Decimal('10.00')]

    def test_string_ids(self, tenant, shampoo):
        po = orders.create_purchase(tenant, [
            {'item_id': str(shampoo.pk), 'quantity': '3', 'unit_cost': '4.00'},
        ])
        line = po_lines(po)[0]

        result = orders.receive_purchase(tenant, po.pk, [(str(line.pk), '3')])
        shampoo.refresh_from_db()

        assert line.item_id == shampoo.pk
        assert result.status == PurchaseStatus.RECEIVED
        assert shampoo.stock_quantity == Decimal('3')

    def test_unknown_item(self, tenant):
        with pytest.raises(OrderError) as exc:
            orders.create_purchase(tenant, [
                PurchaseLineInput(item_id=999999, quantity=Decimal('1'), unit_cost=Decimal('1')),
            ])

        assert exc.value.code == 'ITEM_NOT_FOUND'

    def test_empty(self, tenant):
        with pytest.raises(OrderError) as exc:
            orders.create_purchase(tenant, [])

        assert exc.value.code == 'EMPTY_ORDER'

    def test_mark_ordered(self, purchase):
        assert purchase.status == PurchaseStatus.ORDERED
        assert purchase.ordered_at is not None


class TestReceivePurchase:
    """Tests for orders.receive_purchase()."""

    def test_partial_then_full(self, tenant, purchase, shampoo, user, financial):
        shampoo_line, conditioner_line = po_lines(purchase)

        partial = orders.receive_purchase(tenant, purchase.pk, [(shampoo_line.pk, Decimal('6'))], user=user)
        shampoo.refresh_from_db()

        assert partial.status == PurchaseStatus.PARTIAL_RECEIVED
        assert partial.received_line_ids == [shampoo_line.pk]
        assert partial.steps == []
        assert shampoo.stock_quantity == Decimal('6')
        assert shampoo.average_cost == Decimal('12.0000')

        full = orders.receive_purchase(tenant, purchase.pk, [
            (shampoo_line.pk, Decimal('4')),
            (conditioner_line.pk, Decimal('4')),
        ], user=user)
        purchase.refresh_from_db()

        assert full.status == PurchaseStatus.RECEIVED
        assert purchase.received_by == user
        assert purchase.received_at is not None
        assert full.ok
        assert len(financial.payables) == 1

    def test_movements_linked_to_purchase(self, tenant, purchase):
        shampoo_line, _ = po_lines(purchase)

        orders.receive_purchase(tenant, purchase.pk, [(shampoo_line.pk, Decimal('10'))])

        movement = StockMovement.objects.get(purchase_line=shampoo_line)
        assert movement.movement_type == MovementType.PURCHASE
        assert movement.purchase_order_id == purchase.pk
        assert movement.unit_cost == Decimal('12.0000')

    def test_cmpm_applied_on_receipt(self, tenant, purchase, shampoo, stock_in):
        stock_in(shampoo, '3', '8.00')
        shampoo_line, _ = po_lines(purchase)

        orders.receive_purchase(tenant, purchase.pk, [(shampoo_line.pk, Decimal('10'))])
        shampoo.refresh_from_db()

        assert shampoo.stock_quantity == Decimal('13')
        assert shampoo.average_cost == Decimal('11.0769')

    def test_line_without_cost_update(self, tenant, shampoo, stock_in):
        stock_in(shampoo, '5', '8.00')
        po = orders.create_purchase(tenant, [
            PurchaseLineInput(item_id=shampoo.pk, quantity=Decimal('5'), unit_cost=Decimal('20.00'),
                              update_cost_price=False),
        ])
        line = po_lines(po)[0]

        orders.receive_purchase(tenant, po.pk, [(line.pk, Decimal('5'))])
        shampoo.refresh_from_db()

        assert shampoo.stock_quantity == Decimal('10')
        assert shampoo.average_cost == Decimal('8.0000')

    def test_unknown_lines_and_zero_quantities_skipped(self, tenant, purchase):
        shampoo_line, _ = po_lines(purchase)

        result = orders.receive_purchase(tenant, purchase.pk, [
            (999999, Decimal('3')),
            (shampoo_line.pk, Decimal('0')),
        ])

        assert result.status == PurchaseStatus.ORDERED
        assert result.received_line_ids == []
        assert not StockMovement.objects.exists()

    def test_payables_schedule(self, tenant, purchase, financial):
        lines = po_lines(purchase)

        orders.receive_purchase(tenant, purchase.pk, [(ln.pk, ln.quantity_ordered) for ln in lines])

        purchase_id, installments = financial.payables[0]
        assert purchase_id == purchase.pk
        assert [i.amount for i in installments] == [Decimal('70.00'), Decimal('70.00')]

    def test_payables_failure_reported(self, tenant, purchase, failing_financial):
        lines = po_lines(purchase)

        result = orders.receive_purchase(tenant, purchase.pk, [(ln.pk, ln.quantity_ordered) for ln in lines])

        assert result.status == PurchaseStatus.RECEIVED
        assert [s.name for s in result.failed_steps] == ['financial.create_payables']

    def test_receive_cancelled_purchase(self, tenant, purchase):
        orders.cancel_purchase(tenant, purchase.pk)

        with pytest.raises(OrderError) as exc:
            orders.receive_purchase(tenant, purchase.pk, [])

        assert exc.value.code == 'INVALID_STATUS'

    def test_cannot_cancel_received_purchase(self, tenant, purchase):
        lines = po_lines(purchase)
        orders.receive_purchase(tenant, purchase.pk, [(ln.pk, ln.quantity_ordered) for ln in lines])

        with pytest.raises(OrderError) as exc:
            orders.cancel_purchase(tenant, purchase.pk)

        assert exc.value.code == 'INVALID_STATUS'

    def test_purchase_not_found(self, tenant, purchase):
        with pytest.raises(OrderError) as exc:
            orders.receive_purchase('other', purchase.pk, [])

        assert exc.value.code == 'PURCHASE_NOT_FOUND'
