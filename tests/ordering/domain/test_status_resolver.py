"""Tests for canonical status resolution of split orders."""

import pytest
from ordering.order.graph import OrderGraph
from ordering.order.order import Order
from ordering.order.parts import OrderPart
from ordering.order.resolver import StatusResolver, StatusSource, compute_canonical_status
from ordering.order.status import OrderStatus
from ordering.vendor_order.vendor_order import VendorOrder

S = OrderStatus


def _root(status="placed"):
    root = Order.place(
        order_number="ORD-2001",
        customer_email="sam@example.com",
        items_data=[
            {"product_id": "p-admin", "unit_price": 10.0, "quantity": 1},
            {"product_id": "p-v1", "vendor_id": "vendor-0001", "unit_price": 30.0, "quantity": 1},
        ],
    )
    root.status = status
    return root


def _vendor_part(root, vendor_id, status):
    vendor_order = VendorOrder.split_from(root, vendor_id, [root.items[1]], 0.2)
    vendor_order.status = status
    return OrderPart.from_vendor_order(vendor_order)


def _graph(*vendor_statuses, admin_status=None, root_status="placed"):
    root = _root(root_status)
    admin_part = None
    if admin_status:
        admin = Order.admin_part_of(root, [root.items[0]])
        admin.status = admin_status
        admin_part = OrderPart.from_admin_part(admin)
    vendor_parts = [_vendor_part(root, f"vendor-{i:04d}", s) for i, s in enumerate(vendor_statuses, start=1)]
    return OrderGraph(root=root, admin_part=admin_part, vendor_parts=vendor_parts)


class TestComputeCanonicalStatus:
    @pytest.mark.parametrize(
        "statuses,expected",
        [
            ([S.DELIVERED, S.DELIVERED], S.DELIVERED),
            ([S.DELIVERED, S.SHIPPED], S.SHIPPED),
            ([S.SHIPPED, S.SHIPPED], S.SHIPPED),
            ([S.DELIVERED, S.SHIPPED, S.PROCESSING], S.PROCESSING),
            ([S.PROCESSING], S.PROCESSING),
            ([S.PLACED, S.DELIVERED], S.PLACED),
            ([S.PLACED, S.PROCESSING], S.PLACED),
            ([S.PLACED], S.PLACED),
        ],
    )
    def test_active_parts(self, statuses, expected):
        assert compute_canonical_status(statuses) == expected

    @pytest.mark.parametrize(
        "statuses,expected",
        [
            ([S.CANCELLED, S.CANCELLED_BY_CUSTOMER, S.REJECTED], S.CANCELLED_BY_CUSTOMER),
            ([S.CANCELLED, S.CANCELLED_BY_USER, S.REJECTED], S.CANCELLED_BY_USER),
            ([S.CANCELLED, S.REJECTED], S.REJECTED),
            ([S.CANCELLED, S.CANCELLED], S.CANCELLED),
        ],
    )
    def test_all_cancelled_picks_most_specific(self, statuses, expected):
        assert compute_canonical_status(statuses) == expected

    def test_cancelled_parts_do_not_block_delivery(self):
        assert compute_canonical_status([S.DELIVERED, S.CANCELLED]) == S.DELIVERED

    def test_cancelled_parts_do_not_block_shipping(self):
        assert compute_canonical_status([S.SHIPPED, S.REJECTED, S.DELIVERED]) == S.SHIPPED

    def test_legacy_values_are_normalised(self):
        assert compute_canonical_status(["Delivered", "Shipped"]) == S.SHIPPED

    def test_no_statuses(self):
        with pytest.raises(ValueError):
            compute_canonical_status([])


class TestStatusResolver:
    def test_vendor_delivered_and_vendor_cancelled(self):
        resolved = StatusResolver().resolve(_graph(S.DELIVERED.value, S.CANCELLED.value))
        assert resolved.status == S.DELIVERED
        assert resolved.customer_may_cancel is False
        assert resolved.source == StatusSource.SPLIT

    def test_admin_processing_and_vendor_placed(self):
        resolved = StatusResolver().resolve(_graph(S.PLACED.value, admin_status=S.PROCESSING.value))
        assert resolved.status == S.PLACED
        assert resolved.customer_may_cancel is True

    def test_legacy_statuses_on_parts(self):
        resolved = StatusResolver().resolve(_graph("Pending", "accepted"))
        assert resolved.status == S.PLACED
        assert sorted(s.value for s in resolved.sub_statuses) == ["placed", "processing"]

    def test_all_cancelled_by_customer(self):
        resolved = StatusResolver().resolve(
            _graph(S.CANCELLED_BY_CUSTOMER.value, admin_status=S.CANCELLED.value)
        )
        assert resolved.status == S.CANCELLED_BY_CUSTOMER
        assert resolved.customer_may_cancel is False
        assert resolved.admin_may_change is False

    def test_admin_may_change_other_cancellations(self):
        resolved = StatusResolver().resolve(_graph(S.REJECTED.value, S.CANCELLED.value))
        assert resolved.status == S.REJECTED
        assert resolved.admin_may_change is True

    def test_unsplit_root_uses_own_status(self):
        resolved = StatusResolver().resolve(OrderGraph(root=_root("Confirmed")))
        assert resolved.status == S.PROCESSING
        assert resolved.sub_statuses == []
        assert resolved.source == StatusSource.DIRECT

    def test_part_is_not_resolvable(self):
        root = _root()
        admin = Order.admin_part_of(root, [root.items[0]])
        assert StatusResolver().resolve(OrderGraph(root=admin)) is None

    def test_root_status_is_advisory(self):
        graph = _graph(S.SHIPPED.value, admin_status=S.DELIVERED.value, root_status=S.PLACED.value)
        assert StatusResolver().resolve(graph).status == S.SHIPPED

    def test_resolution_is_idempotent(self):
        graph = _graph(S.SHIPPED.value, S.DELIVERED.value, admin_status=S.PROCESSING.value)
        resolver = StatusResolver()
        assert resolver.resolve(graph) == resolver.resolve(graph)

    def test_to_dict(self):
        data = StatusResolver().resolve(_graph(S.DELIVERED.value, S.CANCELLED.value)).to_dict()
        assert data["status"] == "delivered"
        assert sorted(data["contributing_sub_statuses"]) == ["cancelled", "delivered"]
        assert data["can_customer_cancel"] is False
        assert data["can_admin_change"] is True
