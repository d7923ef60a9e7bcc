"""StatusResolver — the one status a customer sees for a split order.

A split root's own ``status`` is advisory. Its canonical status is derived
from the statuses of its parts:

1. Every part cancelled → the most specific cancellation
   (cancelled_by_customer > cancelled_by_user > rejected > cancelled).
2. Otherwise only active parts count: a cancelled vendor part never holds
   the rest of the order back.
   - all delivered                          → delivered
   - all delivered or shipped               → shipped
   - all delivered, shipped or processing   → processing
   - otherwise placed if any part is placed, else processing, else placed
"""

from dataclasses import dataclass, field
from enum import Enum

from ordering.order.status import (
    CANCELLATION_PRIORITY,
    OrderStatus,
    is_cancelled,
    normalize_status,
)


class StatusSource(Enum):
    DIRECT = "direct"  # unsplit root, its own status
    SPLIT = "split"  # derived from parts


@dataclass(frozen=True)
class ResolvedStatus:
    status: OrderStatus
    sub_statuses: list[OrderStatus] = field(default_factory=list)
    customer_may_cancel: bool = True
    admin_may_change: bool = True
    source: StatusSource = StatusSource.DIRECT

    def to_dict(self):
        return {
            "status": self.status.value,
            "contributing_sub_statuses": [s.value for s in self.sub_statuses],
            "can_customer_cancel": self.customer_may_cancel,
            "can_admin_change": self.admin_may_change,
            "source": self.source.value,
        }


def compute_canonical_status(statuses) -> OrderStatus:
    statuses = [normalize_status(s) for s in statuses]
    if not statuses:
        raise ValueError("Cannot resolve a status from no parts")

    active = [s for s in statuses if not is_cancelled(s)]
    if not active:
        return next(s for s in CANCELLATION_PRIORITY if s in statuses)

    present = set(active)
    if present == {OrderStatus.DELIVERED}:
        return OrderStatus.DELIVERED
    if present <= {OrderStatus.DELIVERED, OrderStatus.SHIPPED}:
        return OrderStatus.SHIPPED
    if present <= {OrderStatus.DELIVERED, OrderStatus.SHIPPED, OrderStatus.PROCESSING}:
        return OrderStatus.PROCESSING
    if OrderStatus.PLACED in present:
        return OrderStatus.PLACED
    if OrderStatus.PROCESSING in present:
        return OrderStatus.PROCESSING
    return OrderStatus.PLACED


def _permissions(status: OrderStatus):
    customer_may_cancel = not (status == OrderStatus.DELIVERED or is_cancelled(status))
    admin_may_change = status != OrderStatus.CANCELLED_BY_CUSTOMER
    return customer_may_cancel, admin_may_change


class StatusResolver:
    def resolve(self, graph) -> ResolvedStatus | None:
        """Resolve the canonical status of ``graph``.

        Returns ``None`` when the graph's root is itself a part.
        """
        root = graph.root
        if root.parent_id:
            return None

        if not graph.is_split:
            status = normalize_status(root.status)
            customer_may_cancel, admin_may_change = _permissions(status)
            return ResolvedStatus(
                status=status,
                sub_statuses=[],
                customer_may_cancel=customer_may_cancel,
                admin_may_change=admin_may_change,
                source=StatusSource.DIRECT,
            )

        sub_statuses = [part.status for part in graph.parts]
        status = compute_canonical_status(sub_statuses)
        customer_may_cancel, admin_may_change = _permissions(status)
        return ResolvedStatus(
            status=status,
            sub_statuses=sub_statuses,
            customer_may_cancel=customer_may_cancel,
            admin_may_change=admin_may_change,
            source=StatusSource.SPLIT,
        )
