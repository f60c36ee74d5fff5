"""
Tests for weighted moving average cost (CMPM).
"""

from decimal import Decimal

import pytest

from orderman import StockError, orders
from orderman.models import CostHistoryEntry, MovementType
from orderman.services.builder import LineInput
from orderman.services.costing import apply_incoming


pytestmark = pytest.mark.django_db


class TestApplyIncoming:
    """Tests for the pure CMPM function."""

    def test_blends_existing_and_incoming(self):
        """3 @ 8.00 + 10 @ 12.00 → 13 @ 11.0769."""
        result = apply_incoming(Decimal('3'), Decimal('8'), Decimal('10'), Decimal('12'))

        assert result.new_stock_qty == Decimal('13')
        assert result.new_average_cost == Decimal('11.0769')
        assert result.stock_value_before == Decimal('24.00')
        assert result.stock_value_after == Decimal('144.00')

    def test_empty_position_takes_incoming_cost(self):
        result = apply_incoming(Decimal('0'), Decimal('0'), Decimal('5'), Decimal('7.5'))

        assert result.new_average_cost == Decimal('7.5000')

    def test_negative_position_counts_as_zero(self):
        """Oversold stock does not drag the average."""
        result = apply_incoming(Decimal('-4'), Decimal('10'), Decimal('6'), Decimal('5'))

        assert result.previous_stock_qty == Decimal('0')
        assert result.new_stock_qty == Decimal('6')
        assert result.new_average_cost == Decimal('5.0000')

    def test_rounds_half_up_to_four_places(self):
        # (0.0001 + 0.0002) / 2 = 0.00015
        result = apply_incoming(Decimal('1'), Decimal('0.0001'), Decimal('1'), Decimal('0.0002'))

        assert result.new_average_cost == Decimal('0.0002')


class TestReceiveIncoming:
    """Tests for orders.receive_incoming()."""

    def test_cmpm_on_purchase(self, tenant, shampoo, stock_in):
        stock_in(shampoo, '3', '8.00')

        movement, result = orders.receive_incoming(tenant, shampoo.pk, Decimal('10'), Decimal('12.00'))
        shampoo.refresh_from_db()

        assert shampoo.stock_quantity == Decimal('13')
        assert shampoo.average_cost == Decimal('11.0769')
        assert shampoo.cost_price == Decimal('11.08')
        assert movement.movement_type == MovementType.PURCHASE
        assert movement.previous_quantity == Decimal('3')
        assert result.previous_average_cost == Decimal('8.0000')

    def test_writes_cost_history(self, tenant, shampoo, stock_in):
        stock_in(shampoo, '3', '8.00')
        movement, _ = orders.receive_incoming(
            tenant, shampoo.pk, Decimal('10'), Decimal('12.00'), reference='NF 123',
        )

        entry = orders.cost_history(tenant, shampoo.pk).first()

        assert entry.movement_id == movement.pk
        assert entry.previous_stock_qty == Decimal('3')
        assert entry.new_stock_qty == Decimal('13')
        assert entry.new_average_cost == Decimal('11.0769')
        assert entry.reference == 'NF 123'
        assert CostHistoryEntry.objects.filter(item=shampoo).count() == 2

    def test_without_cost_application(self, tenant, shampoo, stock_in):
        """apply_cost=False moves stock only."""
        stock_in(shampoo, '5', '8.00')

        movement, result = orders.receive_incoming(
            tenant, shampoo.pk, Decimal('5'), Decimal('20.00'), apply_cost=False,
        )
        shampoo.refresh_from_db()

        assert result is None
        assert shampoo.stock_quantity == Decimal('10')
        assert shampoo.average_cost == Decimal('8.0000')
        assert not CostHistoryEntry.objects.filter(movement=movement).exists()

    def test_rejects_non_positive_quantity(self, tenant, shampoo):
        with pytest.raises(StockError) as exc:
            orders.receive_incoming(tenant, shampoo.pk, Decimal('0'), Decimal('1'))

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_rejects_negative_cost(self, tenant, shampoo):
        with pytest.raises(StockError) as exc:
            orders.receive_incoming(tenant, shampoo.pk, Decimal('1'), Decimal('-1'))

        assert exc.value.code == 'INVALID_COST'

    def test_other_tenant_item_not_found(self, shampoo):
        with pytest.raises(StockError) as exc:
            orders.receive_incoming('other', shampoo.pk, Decimal('1'), Decimal('1'))

        assert exc.value.code == 'ITEM_NOT_FOUND'


class TestSaleKeepsCost:
    """Sales snapshot the average cost and never change it."""

    def test_sale_does_not_move_average(self, tenant, shampoo, stock_in):
        stock_in(shampoo, '5', '8.00')

        result = orders.checkout(tenant, 'cust-1', [LineInput(item_id=shampoo.pk, quantity=Decimal('2'))])
        shampoo.refresh_from_db()

        assert shampoo.stock_quantity == Decimal('3')
        assert shampoo.average_cost == Decimal('8.0000')
        assert result.lines[0].cost_price == Decimal('8.0000')
        assert not CostHistoryEntry.objects.filter(movement_type=MovementType.SALE).exists()

    def test_current_cost_falls_back_to_cost_price(self, tenant, sofa):
        assert orders.current_cost(tenant, sofa.pk) == Decimal('700.00')


class TestChainedReceipts:
    """The average follows every receipt in sequence, sales in between."""

    def test_average_after_each_receipt(self, tenant, shampoo, stock_in):
        stock_in(shampoo, '10', '5.00')
        stock_in(shampoo, '10', '8.00')
        stock_in(shampoo, '20', '11.00')
        orders.checkout(tenant, 'cust-1', [LineInput(item_id=shampoo.pk, quantity=Decimal('5'))])
        stock_in(shampoo, '5', '15.00')

        history = list(CostHistoryEntry.objects.filter(item=shampoo).order_by('created_at', 'pk'))

        assert [h.new_average_cost for h in history] == [
            Decimal('5.0000'), Decimal('6.5000'), Decimal('8.7500'), Decimal('9.5313'),
        ]
        assert [h.previous_average_cost for h in history[1:]] == [
            Decimal('5.0000'), Decimal('6.5000'), Decimal('8.7500'),
        ]
        assert [h.previous_stock_qty for h in history] == [
            Decimal('0'), Decimal('10'), Decimal('20'), Decimal('35'),
        ]
        assert history[-1].stock_value_before == Decimal('306.25')
        assert history[-1].stock_value_after == Decimal('381.25')
        assert shampoo.stock_quantity == Decimal('40')
        assert shampoo.average_cost == Decimal('9.5313')
        assert shampoo.cost_price == Decimal('9.53')
