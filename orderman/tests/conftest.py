"""
Pytest fixtures for Orderman tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from orderman import orders
from orderman.adapters import get_financial_backend, get_process_backend, reset_backends
from orderman.models import CatalogItem, CompositionComponent, ItemKind


User = get_user_model()

TENANT = 'acme'


@pytest.fixture(autouse=True)
def fresh_backends():
    """Every test gets new collaborator instances."""
    reset_backends()
    yield
    reset_backends()


@pytest.fixture
def tenant():
    return TENANT


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='clerk',
        password='testpass123'
    )


@pytest.fixture
def financial():
    """The recording financial backend configured for tests."""
    return get_financial_backend()


@pytest.fixture
def process():
    """The recording process backend configured for tests."""
    return get_process_backend()


@pytest.fixture
def failing_financial(settings):
    settings.ORDERMAN = {
        **settings.ORDERMAN,
        'FINANCIAL_BACKEND': 'orderman.tests.backends.FailingFinancialBackend',
    }
    reset_backends()
    return get_financial_backend()


@pytest.fixture
def failing_process(settings):
    settings.ORDERMAN = {
        **settings.ORDERMAN,
        'PROCESS_BACKEND': 'orderman.tests.backends.FailingProcessBackend',
    }
    reset_backends()
    return get_process_backend()


# =========================================================================
# CATALOG
# =========================================================================


def make_item(name, **fields):
    fields.setdefault('tenant_id', TENANT)
    fields.setdefault('kind', ItemKind.PRODUCT)
    return CatalogItem.objects.create(name=name, **fields)


@pytest.fixture
def stock_in(db):
    """Factory: bring stock in at a cost (purchase movement + CMPM)."""

    def _stock_in(item, quantity, unit_cost):
        orders.receive_incoming(item.tenant_id, item.pk, Decimal(quantity), Decimal(unit_cost))
        item.refresh_from_db()
        return item

    return _stock_in


@pytest.fixture
def shampoo(db):
    """Tracked product sold over the counter, 10% commission."""
    return make_item(
        'Shampoo',
        sku='SHP-1',
        track_stock=True,
        sell_price=Decimal('30.00'),
        commission_percent=Decimal('10'),
        min_stock=Decimal('2'),
    )


@pytest.fixture
def conditioner(db):
    """Tracked product sold over the counter."""
    return make_item(
        'Conditioner',
        sku='CND-1',
        track_stock=True,
        sell_price=Decimal('30.00'),
    )


@pytest.fixture
def sofa(db):
    """Product that must be picked and delivered, not stock-tracked."""
    return make_item(
        'Sofa',
        sell_price=Decimal('1200.00'),
        cost_price=Decimal('700.00'),
        requires_separation=True,
        requires_delivery=True,
    )


@pytest.fixture
def haircut(db):
    """Service that needs an appointment and runs a workflow."""
    return make_item(
        'Haircut',
        kind=ItemKind.SERVICE,
        sell_price=Decimal('80.00'),
        requires_scheduling=True,
        service_type_id='hair',
    )


@pytest.fixture
def consulting(db):
    """Service delivered on the spot."""
    return make_item(
        'Consulting',
        kind=ItemKind.SERVICE,
        sell_price=Decimal('100.00'),
    )


@pytest.fixture
def make_kit(db):
    """Factory: kit item over the given (child, quantity) pairs."""

    def _make(price, *components):
        kit = make_item('Kit', is_composition=True, sell_price=Decimal(price))
        for sort_order, (child, quantity) in enumerate(components):
            CompositionComponent.objects.create(
                parent=kit,
                child=child,
                quantity=Decimal(quantity),
                sort_order=sort_order,
            )
        return kit

    return _make
