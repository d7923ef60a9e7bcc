"""ConsistencyAuditor — repairs a split order whose root and parts disagree.

Parts are written independently and without transactions, so a root can be
cancelled while some of its parts are still moving. The auditor runs before
every status read and after every status write:

* root cancelled, parts still in flight → compensate each of them and
  force it to ``cancelled_by_customer`` as ``system_sync``
* root's advisory status behind its parts → rewrite it to the resolved status

Running it again on a repaired graph changes nothing.
"""

from ordering.domain import logger
from ordering.order.compensation import cancellation_saga
from ordering.order.graph import OrderGraphRepository
from ordering.order.resolver import StatusResolver
from ordering.order.status import Actor, OrderStatus, is_cancelled, is_terminal, normalize_status

SYNC_REASON = "Auto-synced with main order status"


class ConsistencyAuditor:
    def __init__(self, stock_ledger, commission_ledger, graphs=None, resolver=None):
        self.stock_ledger = stock_ledger
        self.commission_ledger = commission_ledger
        self.graphs = graphs or OrderGraphRepository()
        self.resolver = resolver or StatusResolver()

    def audit(self, graph):
        root = graph.root
        if root.parent_id:
            return None

        root_status = normalize_status(root.status)
        root_cancelled = is_cancelled(root_status) or root.cancelled_by == Actor.CUSTOMER.value

        # Delivered parts are terminal and stay as they are
        repairable = [p for p in graph.active_parts if not is_terminal(p.status)]

        if root_cancelled and repairable:
            logger.warning(
                "Cancelled order has active parts, syncing",
                order_id=str(root.id),
                active_parts=[p.id for p in repairable],
            )
            saga = cancellation_saga(
                self.stock_ledger,
                self.commission_ledger,
                self.graphs,
                OrderStatus.CANCELLED_BY_CUSTOMER,
                Actor.SYSTEM_SYNC,
                SYNC_REASON,
            )
            for part in repairable:
                repaired, _ = saga.run(part)
                graph.replace(repaired)

        resolved = self.resolver.resolve(graph)

        if graph.is_split and resolved.status != root_status:
            # A root already closed out as cancelled keeps its own cancellation
            if not (is_cancelled(root_status) and is_cancelled(resolved.status)):
                logger.info(
                    "Syncing order status with its parts",
                    order_id=str(root.id),
                    previous_status=root_status.value,
                    new_status=resolved.status.value,
                )
                root.record_status(resolved.status, Actor.SYSTEM_SYNC, SYNC_REASON, previous_status=root_status)
                self.graphs.save(root)

        return resolved
