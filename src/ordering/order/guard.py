"""StatusTransitionGuard — which status changes a part may make, and who may make them.

    placed → processing → shipped → delivered
      └──────────┴────────────┴──→ any cancelled-class status

``delivered`` and every cancelled-class status are terminal. A part the
customer cancelled belongs to the customer: only the system of record may
touch it afterwards.
"""

from dataclasses import dataclass, field

from ordering.order.status import (
    CANCELLED_CLASS,
    SYSTEM_ACTORS,
    Actor,
    OrderStatus,
    is_terminal,
    parse_actor,
    parse_status,
)

_FORWARD = {
    OrderStatus.PLACED: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}

_ORDER = [OrderStatus.PLACED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED]


def allowed_transitions(current: OrderStatus) -> list[OrderStatus]:
    """Statuses reachable from ``current`` in one step, in lifecycle order."""
    if is_terminal(current):
        return []
    forward = sorted(_FORWARD.get(current, set()), key=_ORDER.index)
    cancelled = sorted(CANCELLED_CLASS, key=lambda s: s.value)
    return forward + cancelled


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    current_status: OrderStatus
    requested_status: OrderStatus
    reason: str | None = None
    allowed_transitions: list[OrderStatus] = field(default_factory=list)


class StatusTransitionGuard:
    def can_transition(self, current, requested, actor) -> TransitionDecision:
        """Decide whether ``actor`` may move a part from ``current`` to ``requested``.

        Unknown statuses or actors raise ``ValidationError``.
        """
        current = parse_status(current)
        requested = parse_status(requested)
        actor = parse_actor(actor)
        options = allowed_transitions(current)

        def reject(reason):
            return TransitionDecision(
                allowed=False,
                current_status=current,
                requested_status=requested,
                reason=reason,
                allowed_transitions=options,
            )

        if current == OrderStatus.CANCELLED_BY_CUSTOMER and actor not in SYSTEM_ACTORS:
            return reject("Order was cancelled by the customer and can no longer be changed")

        if requested == current:
            return TransitionDecision(
                allowed=True, current_status=current, requested_status=requested, allowed_transitions=options
            )

        if actor == Actor.CUSTOMER and requested != OrderStatus.CANCELLED_BY_CUSTOMER:
            return reject("Customers can only cancel an order")

        if is_terminal(current):
            return reject(f"Order is already {current.value} and cannot change status")

        if requested not in options:
            return reject(f"Cannot change status from {current.value} to {requested.value}")

        return TransitionDecision(
            allowed=True, current_status=current, requested_status=requested, allowed_transitions=options
        )
