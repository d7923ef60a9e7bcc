"""Application tests for repairing split orders whose root and parts disagree."""

from unittest.mock import patch

from ordering.order.auditor import SYNC_REASON, ConsistencyAuditor
from ordering.order.status import OrderStatus
from ordering.vendor_order.vendor_order import VendorOrder
from protean import current_domain


def _bucket(commission_ledger, graph, vendor_id):
    part = next(p for p in graph.vendor_parts if p.vendor_id == vendor_id)
    return commission_ledger.bucket_for(vendor_id, part.created_at.month, part.created_at.year)


class TestCancelledRootWithActiveParts:
    def test_forces_active_parts_to_cancelled_by_customer(
        self, mixed_order, set_status, service, stock_ledger, commission_ledger
    ):
        graph = mixed_order(vendors=("vendor-7f3a",))
        vendor_part = graph.vendor_parts[0]
        set_status(vendor_part.id, OrderStatus.SHIPPED.value)
        set_status(graph.root.id, OrderStatus.CANCELLED_BY_CUSTOMER.value)

        resolved = service.recompute_parent(graph.root.id)

        assert resolved.status == OrderStatus.CANCELLED_BY_CUSTOMER
        repaired = current_domain.repository_for(VendorOrder).get(vendor_part.id)
        assert repaired.status == OrderStatus.CANCELLED_BY_CUSTOMER.value
        assert repaired.cancelled_by == "system_sync"
        assert repaired.cancellation_reason == SYNC_REASON
        assert repaired.commission_reversed is True
        assert repaired.stock_restored is True

    def test_reverses_commission_and_restores_stock(
        self, mixed_order, set_status, service, stock_ledger, commission_ledger
    ):
        graph = mixed_order(vendors=("vendor-7f3a",))
        assert _bucket(commission_ledger, graph, "vendor-7f3a").total_commission == 10.0
        set_status(graph.root.id, OrderStatus.CANCELLED.value)

        service.recompute_parent(graph.root.id)

        bucket = _bucket(commission_ledger, graph, "vendor-7f3a")
        assert bucket.total_commission == 0.0
        assert bucket.total_sales == 0.0
        assert bucket.total_orders == 0
        assert stock_ledger.available["prod-vendor-7f3a"] == 1
        assert stock_ledger.available["prod-admin"] == 2

    def test_repeated_audits_compensate_once(self, mixed_order, set_status, service, stock_ledger, commission_ledger):
        graph = mixed_order(vendors=("vendor-7f3a", "vendor-91bc"))
        set_status(graph.root.id, OrderStatus.CANCELLED_BY_CUSTOMER.value)

        for _ in range(3):
            service.recompute_parent(graph.root.id)

        assert _bucket(commission_ledger, graph, "vendor-7f3a").total_commission == 0.0
        assert stock_ledger.available["prod-vendor-7f3a"] == 1
        assert stock_ledger.restorations.count(("prod-admin", 2)) == 1

    def test_root_cancelled_by_customer_flag_alone_triggers_repair(self, mixed_order, set_status, service):
        graph = mixed_order(vendors=("vendor-7f3a",))
        set_status(graph.root.id, cancelled_by="customer")

        resolved = service.recompute_parent(graph.root.id)

        assert resolved.status == OrderStatus.CANCELLED_BY_CUSTOMER

    def test_parts_already_cancelled_are_left_alone(self, mixed_order, set_status, service, stock_ledger):
        graph = mixed_order(vendors=("vendor-7f3a",))
        set_status(graph.vendor_parts[0].id, OrderStatus.REJECTED.value)
        set_status(graph.root.id, OrderStatus.CANCELLED_BY_CUSTOMER.value)

        service.recompute_parent(graph.root.id)

        rejected = current_domain.repository_for(VendorOrder).get(graph.vendor_parts[0].id)
        assert rejected.status == OrderStatus.REJECTED.value
        assert stock_ledger.available["prod-vendor-7f3a"] == 0

    def test_delivered_parts_stay_delivered(self, mixed_order, set_status, service):
        graph = mixed_order(vendors=("vendor-7f3a",))
        set_status(graph.vendor_parts[0].id, OrderStatus.DELIVERED.value)
        set_status(graph.root.id, OrderStatus.CANCELLED_BY_CUSTOMER.value)

        service.recompute_parent(graph.root.id)

        delivered = current_domain.repository_for(VendorOrder).get(graph.vendor_parts[0].id)
        assert delivered.status == OrderStatus.DELIVERED.value


class TestCompensationFailures:
    def test_commission_failure_does_not_block_cancellation(
        self, mixed_order, set_status, service, stock_ledger, commission_ledger
    ):
        graph = mixed_order(vendors=("vendor-7f3a",))
        set_status(graph.root.id, OrderStatus.CANCELLED_BY_CUSTOMER.value)

        with patch.object(commission_ledger, "reverse", side_effect=RuntimeError("ledger down")):
            service.recompute_parent(graph.root.id)

        vendor_order = current_domain.repository_for(VendorOrder).get(graph.vendor_parts[0].id)
        assert vendor_order.status == OrderStatus.CANCELLED_BY_CUSTOMER.value
        assert vendor_order.commission_reversed is False
        assert vendor_order.stock_restored is True

    def test_stock_failure_does_not_block_cancellation(self, mixed_order, set_status, service, stock_ledger):
        graph = mixed_order(vendors=("vendor-7f3a",))
        set_status(graph.root.id, OrderStatus.CANCELLED_BY_CUSTOMER.value)
        stock_ledger.configure(should_succeed=False)

        service.recompute_parent(graph.root.id)

        vendor_order = current_domain.repository_for(VendorOrder).get(graph.vendor_parts[0].id)
        assert vendor_order.status == OrderStatus.CANCELLED_BY_CUSTOMER.value
        assert vendor_order.commission_reversed is True
        assert vendor_order.stock_restored is False


class TestAdvisoryRootStatus:
    def test_root_follows_its_parts(self, mixed_order, set_status, service):
        graph = mixed_order(vendors=("vendor-7f3a",))
        set_status(graph.admin_part.id, OrderStatus.SHIPPED.value)
        set_status(graph.vendor_parts[0].id, OrderStatus.SHIPPED.value)

        service.recompute_parent(graph.root.id)

        root = service.graphs.get_order(graph.root.id)
        assert root.status == OrderStatus.SHIPPED.value
        assert root.status_history[-1].actor == "system_sync"

    def test_in_sync_root_is_not_rewritten(self, mixed_order, service):
        graph = mixed_order(vendors=("vendor-7f3a",))
        service.recompute_parent(graph.root.id)
        history = len(service.graphs.get_order(graph.root.id).status_history)

        service.recompute_parent(graph.root.id)

        assert len(service.graphs.get_order(graph.root.id).status_history) == history

    def test_part_graph_is_not_audited(self, mixed_order, service, stock_ledger, commission_ledger):
        graph = mixed_order(vendors=("vendor-7f3a",))
        part_graph = service.graphs.load(graph.admin_part.id)
        auditor = ConsistencyAuditor(stock_ledger, commission_ledger)
        assert auditor.audit(part_graph) is None
