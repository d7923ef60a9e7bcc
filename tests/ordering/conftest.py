import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        # Clear all databases and drain the event store after every test
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _adapters():
    """Fresh ledgers and notifier for every test."""
    from ordering.commission import reset_commission_ledger
    from ordering.notification import reset_status_notifier
    from ordering.stock import reset_stock_ledger

    reset_stock_ledger()
    reset_commission_ledger()
    reset_status_notifier()
    yield
    reset_stock_ledger()
    reset_commission_ledger()
    reset_status_notifier()


@pytest.fixture
def stock_ledger():
    from ordering.stock import get_stock_ledger

    return get_stock_ledger()


@pytest.fixture
def commission_ledger():
    from ordering.commission import get_commission_ledger

    return get_commission_ledger()


@pytest.fixture
def notifier():
    from ordering.notification import get_status_notifier

    return get_status_notifier()


@pytest.fixture
def service(stock_ledger, commission_ledger, notifier):
    from ordering.order.service import OrderStatusService

    return OrderStatusService(stock_ledger, commission_ledger, notifier)


@pytest.fixture
def place_order():
    """Place and persist a root order. Items default to a single admin item."""
    from ordering.order.order import Order

    default_items = [{"product_id": "prod-admin", "title": "House blend", "unit_price": 20.0, "quantity": 2}]

    def _place(order_number="ORD-1001", customer_email="jane@example.com", items=None):
        order = Order.place(
            order_number=order_number,
            customer_email=customer_email,
            customer_name="Jane Doe",
            city="Springfield",
            payment_method="cod",
            items_data=items or default_items,
        )
        current_domain.repository_for(Order).add(order)
        return order

    return _place


@pytest.fixture
def mixed_order(place_order, service):
    """Place and split a mixed order: one admin item plus one 50.00 item per vendor.

    Returns the freshly loaded OrderGraph.
    """

    def _make(vendors=("vendor-7f3a", "vendor-91bc"), order_number="ORD-1001", customer_email="jane@example.com"):
        items = [{"product_id": "prod-admin", "title": "House blend", "unit_price": 20.0, "quantity": 2}]
        items += [
            {
                "product_id": f"prod-{vendor}",
                "vendor_id": vendor,
                "title": f"Item from {vendor}",
                "unit_price": 50.0,
                "quantity": 1,
            }
            for vendor in vendors
        ]
        root = place_order(order_number=order_number, customer_email=customer_email, items=items)
        service.split_order(root.id)
        return service.graphs.load(root.id)

    return _make


@pytest.fixture
def set_status():
    """Overwrite a stored record's fields directly, bypassing the guard."""
    from ordering.order.graph import OrderGraphRepository

    def _set(record_id, status=None, **fields):
        graphs = OrderGraphRepository()
        record = graphs.get_record(record_id)
        if status is not None:
            record.status = status
        for name, value in fields.items():
            setattr(record, name, value)
        graphs.save(record)
        return record

    return _set
