"""Shared BDD fixtures and step definitions for order status resolution."""

import pytest
from ordering.order.errors import TransitionRejected
from ordering.order.graph import OrderGraphRepository
from ordering.vendor_order.vendor_order import VendorOrder
from pytest_bdd import given, parsers, then, when

ADMIN_ITEM = {"product_id": "prod-admin", "title": "House blend", "unit_price": 20.0, "quantity": 2}


def _vendor_item(vendor_id, unit_price=50.0):
    return {
        "product_id": f"prod-{vendor_id}",
        "vendor_id": vendor_id,
        "title": f"Item from {vendor_id}",
        "unit_price": unit_price,
        "quantity": 1,
    }


def _vendor_ids(text):
    return [v.strip() for v in text.split(",") if v.strip()]


def _vendor_part(order_id, vendor_id):
    graph = OrderGraphRepository().load(order_id)
    return next(p for p in graph.vendor_parts if p.vendor_id == vendor_id)


@pytest.fixture()
def error():
    """Container for a captured rejection."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a split order with an admin part and vendor parts "{vendors}"'),
    target_fixture="order_id",
)
def _(place_order, service, vendors):
    items = [ADMIN_ITEM] + [_vendor_item(v) for v in _vendor_ids(vendors)]
    root = place_order(items=items)
    service.split_order(root.id)
    return str(root.id)


@given(
    parsers.cfparse('a split order with a vendor part of "{vendor_id}" worth {amount:f}'),
    target_fixture="order_id",
)
def _(place_order, service, vendor_id, amount):
    root = place_order(items=[ADMIN_ITEM, _vendor_item(vendor_id, unit_price=amount)])
    service.split_order(root.id)
    return str(root.id)


@given(
    parsers.cfparse('a vendor-only order forwarded to vendors "{vendors}"'),
    target_fixture="order_id",
)
def _(place_order, vendors):
    root = place_order(items=[_vendor_item(v) for v in _vendor_ids(vendors)])
    graphs = OrderGraphRepository()
    for item in root.items:
        graphs.save(VendorOrder.split_from(root, item.vendor_id, [item], 0.20))
    return str(root.id)


@given(parsers.cfparse('the admin part is "{status}"'))
def _(order_id, set_status, status):
    graph = OrderGraphRepository().load(order_id)
    set_status(graph.admin_part.id, status)


@given(parsers.cfparse('the vendor part of "{vendor_id}" is "{status}"'))
def _(order_id, set_status, vendor_id, status):
    set_status(_vendor_part(order_id, vendor_id).id, status)


@given("the customer cancelled the order")
def _(order_id, set_status):
    set_status(order_id, "cancelled_by_customer", cancelled_by="customer")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the order status is resolved", target_fixture="resolved")
def _(service, order_id):
    return service.get_display_status(order_id)


@when(parsers.cfparse('the vendor moves the part of "{vendor_id}" to "{status}"'))
def _(service, order_id, error, vendor_id, status):
    try:
        service.change_status(_vendor_part(order_id, vendor_id).id, status, "vendor")
    except TransitionRejected as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(resolved, status):
    assert resolved.status.value == status


@then(parsers.cfparse('the vendor part of "{vendor_id}" has status "{status}"'))
def _(order_id, vendor_id, status):
    assert _vendor_part(order_id, vendor_id).status.value == status


@then(parsers.cfparse('the commission of the vendor part of "{vendor_id}" is reversed'))
def _(order_id, vendor_id):
    assert _vendor_part(order_id, vendor_id).commission_reversed is True


@then(parsers.cfparse('the commission booked for "{vendor_id}" is {amount:f}'))
def _(order_id, commission_ledger, vendor_id, amount):
    part = _vendor_part(order_id, vendor_id)
    bucket = commission_ledger.bucket_for(vendor_id, part.created_at.month, part.created_at.year)
    assert bucket.total_commission == pytest.approx(amount)


@then(parsers.cfparse('the change is rejected with reason "{reason}"'))
def _(error, reason):
    assert isinstance(error["exc"], TransitionRejected), "Expected the change to be rejected"
    assert error["exc"].reason == reason


@then("no further transitions are allowed")
def _(error):
    assert error["exc"].allowed_transitions == []
