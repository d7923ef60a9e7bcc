"""OrderStatusService — the entry points for reading and changing order status.

Every write goes guard → compensation saga → status write → parent
recompute. Every read goes through the ConsistencyAuditor first, so a
customer never sees a status computed from an inconsistent graph.
"""

from enum import Enum

from protean.exceptions import ValidationError

from ordering.commission import get_commission_ledger
from ordering.domain import logger
from ordering.notification import get_status_notifier
from ordering.order.auditor import ConsistencyAuditor
from ordering.order.compensation import CompensationSaga, RewriteStatus, cancellation_saga
from ordering.order.errors import NotOrderOwner, TransitionRejected
from ordering.order.graph import OrderGraphRepository
from ordering.order.guard import StatusTransitionGuard
from ordering.order.order import Order
from ordering.order.parts import OrderPart, PartKind
from ordering.order.resolver import StatusResolver
from ordering.order.splitter import OrderSplitter
from ordering.order.status import (
    Actor,
    OrderStatus,
    is_cancelled,
    is_terminal,
    normalize_status,
    parse_actor,
    parse_status,
)
from ordering.stock import get_stock_ledger


class OrderListing(Enum):
    ADMIN = "admin_orders"
    VENDOR = "vendor_orders"


_ITEM_CANCELLABLE = (OrderStatus.PLACED, OrderStatus.PROCESSING)


class OrderStatusService:
    def __init__(self, stock_ledger, commission_ledger, notifier=None, graphs=None):
        self.stock_ledger = stock_ledger
        self.commission_ledger = commission_ledger
        self.notifier = notifier
        self.graphs = graphs or OrderGraphRepository()
        self.guard = StatusTransitionGuard()
        self.resolver = StatusResolver()
        self.auditor = ConsistencyAuditor(stock_ledger, commission_ledger, self.graphs, self.resolver)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def change_status(self, part_id, requested_status, actor, reason=None) -> dict:
        """Move one part (or an unsplit order) to ``requested_status``.

        Raises ``TransitionRejected`` when the guard refuses the change.
        """
        requested = parse_status(requested_status)
        actor = parse_actor(actor)

        part = self.graphs.get_part(part_id)
        if actor == Actor.CUSTOMER:
            raise TransitionRejected(
                "Customers cancel the whole order through the order cancellation, not one part",
                current_status=part.status.value,
                requested_status=requested.value,
            )
        if part.kind == PartKind.ROOT and self.graphs.load(part.record).is_split:
            raise ValidationError(
                {"status": ["The status of a split order follows its parts; change a part instead"]}
            )

        decision = self.guard.can_transition(part.status, requested, actor)
        if not decision.allowed:
            logger.info(
                "Status change rejected",
                part_id=part.id,
                current_status=part.status.value,
                requested_status=requested.value,
                actor=actor.value,
                reason=decision.reason,
            )
            raise TransitionRejected(
                decision.reason,
                current_status=decision.current_status.value,
                requested_status=requested.value,
                allowed_transitions=[s.value for s in decision.allowed_transitions],
            )

        previous = part.status
        if requested != previous:
            if is_cancelled(requested) and not is_cancelled(previous):
                saga = cancellation_saga(
                    self.stock_ledger, self.commission_ledger, self.graphs, requested, actor, reason
                )
            else:
                saga = CompensationSaga([RewriteStatus(self.graphs, requested, actor, reason)])
            part, _ = saga.run(part)
            self._notify(part, previous)

            if part.parent_id:
                self.recompute_parent(part.parent_id)
                # The sync may have moved the part again
                part = self.graphs.get_part(part.id)

        return {
            "order_id": part.id,
            "parent_id": part.parent_id,
            "previous_status": previous.value,
            "new_status": part.status.value,
        }

    def customer_cancel(self, order_identifier, requester_email, reason=None) -> dict:
        """Cancel an order on the customer's behalf.

        ``order_identifier`` may be the id or order number of the root or of
        any of its parts; the whole order is cancelled either way.
        """
        record = self.graphs.find_order_or_part(order_identifier)
        addressed = OrderPart.from_record(record)
        root = record if addressed.kind == PartKind.ROOT else self.graphs.get_order(addressed.parent_id)

        self._assert_owner(root, requester_email, order_identifier)

        graph = self.graphs.load(root)
        current = self.resolver.resolve(graph).status if addressed.kind == PartKind.ROOT else addressed.status
        if is_terminal(current):
            raise TransitionRejected(
                f"Order is already {current.value} and cannot be cancelled",
                current_status=current.value,
                requested_status=OrderStatus.CANCELLED_BY_CUSTOMER.value,
            )

        targets = graph.parts if graph.is_split else [OrderPart.from_root(root)]
        saga = cancellation_saga(
            self.stock_ledger,
            self.commission_ledger,
            self.graphs,
            OrderStatus.CANCELLED_BY_CUSTOMER,
            Actor.CUSTOMER,
            reason,
        )

        cancelled_parts = []
        for part in targets:
            decision = self.guard.can_transition(part.status, OrderStatus.CANCELLED_BY_CUSTOMER, Actor.CUSTOMER)
            if not decision.allowed or part.status == OrderStatus.CANCELLED_BY_CUSTOMER:
                continue
            previous = part.status
            part, _ = saga.run(part)
            graph.replace(part)
            cancelled_parts.append(part.id)
            if graph.is_split:
                logger.info("Order part cancelled by customer", order_id=str(root.id), part_id=part.id)
            else:
                self._notify(part, previous)

        root_previous = normalize_status(root.status)
        root.cancel_by_customer(requested_for=str(record.id), cancelled_parts=cancelled_parts, reason=reason)
        self.graphs.save(root)
        if graph.is_split:
            self._notify(OrderPart.from_root(root), root_previous)

        self.auditor.audit(graph)

        return {
            "order_id": str(root.id),
            "requested_for": str(record.id),
            "new_status": OrderStatus.CANCELLED_BY_CUSTOMER.value,
            "commission_reversed": True,
            "cancelled_parts": cancelled_parts,
        }

    def cancel_items(self, order_identifier, requester_email, item_ids, reason=None) -> dict:
        """Drop individual items from an order that was not forwarded to vendors.

        Stock for the dropped lines is released straight away. The order
        keeps its status until its last item is dropped.
        """
        record = self.graphs.find_order_or_part(order_identifier)
        if not (isinstance(record, Order) and record.is_root):
            raise ValidationError({"order": ["Items are cancelled on the order itself, not on one of its parts"]})
        self._assert_owner(record, requester_email, order_identifier)

        if record.is_split or self.graphs.load(record).is_split:
            raise ValidationError(
                {"order": ["Order has already been forwarded to vendors; cancel the whole order instead"]}
            )

        current = normalize_status(record.status)
        if current not in _ITEM_CANCELLABLE:
            raise TransitionRejected(
                f"Cannot cancel items. Order has already been {current.value}",
                current_status=current.value,
                requested_status=OrderStatus.CANCELLED_BY_CUSTOMER.value,
            )

        cancelled = record.cancel_items(item_ids, reason)

        lines = [(str(item.product_id), item.quantity) for item in cancelled]
        try:
            released = self.stock_ledger.release_for_order(str(record.id), lines)
        except Exception as exc:
            released = {"success": False, "error": str(exc)}
        if not released.get("success"):
            logger.warning(
                "Failed to restore stock for cancelled items", order_id=str(record.id), error=released.get("error")
            )
        elif not record.active_items:
            record.mark_stock_restored()

        self.graphs.save(record)

        status = normalize_status(record.status)
        logger.info(
            "Order items cancelled",
            order_id=str(record.id),
            items=len(cancelled),
            remaining_total=record.total_amount,
            status=status.value,
        )
        if status != current:
            self._notify(OrderPart.from_root(record), current)

        return {
            "order_id": str(record.id),
            "order_number": record.order_number,
            "cancelled_items": [str(item.id) for item in cancelled],
            "refund_amount": round(sum(item.line_total for item in cancelled), 2),
            "remaining_total": record.total_amount,
            "order_status": status.value,
        }

    def split_order(self, order_id):
        splitter = OrderSplitter(self.commission_ledger, self.graphs)
        return splitter.split(self.graphs.get_order(order_id))

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_display_status(self, order_id):
        """Canonical status of an order. A part id resolves to its order."""
        record = self.graphs.get_record(order_id)
        root = record if isinstance(record, Order) and record.is_root else self.graphs.get_order(record.parent_id)
        return self.auditor.audit(self.graphs.load(root))

    def list_admin_orders(self, listing, status=None) -> list[dict]:
        """Orders and parts for one admin queue, newest first.

        ``listing`` is ``admin_orders`` or ``vendor_orders``; ``status``
        filters on the normalised status, so legacy values match too.
        """
        try:
            listing = OrderListing(listing)
        except ValueError:
            raise ValidationError(
                {"listing": [f"Unknown order listing '{listing}'; expected admin_orders or vendor_orders"]}
            ) from None
        wanted = parse_status(status) if status else None

        if listing == OrderListing.ADMIN:
            records = self.graphs.admin_records()
        else:
            records = self.graphs.vendor_records()

        parts = [OrderPart.from_record(record) for record in records]
        if wanted is not None:
            parts = [part for part in parts if part.status == wanted]
        parts.sort(key=lambda p: p.created_at.isoformat() if p.created_at else "", reverse=True)

        return [
            {
                "order_id": part.id,
                "order_number": part.order_number,
                "kind": part.kind.value,
                "parent_id": part.parent_id,
                "vendor_id": part.vendor_id,
                "status": part.status.value,
                "total_amount": part.total_amount,
                "created_at": part.created_at.isoformat() if part.created_at else None,
            }
            for part in parts
        ]

    def recompute_parent(self, root_id):
        return self.auditor.audit(self.graphs.load(root_id))

    def list_customer_orders(self, customer_email) -> list[dict]:
        orders = []
        for root in self.graphs.roots_for_customer(customer_email):
            graph = self.graphs.load(root)
            resolved = self.auditor.audit(graph)
            orders.append(
                {
                    "order_id": str(root.id),
                    "order_number": root.order_number,
                    "order_type": root.order_type,
                    "total_amount": root.total_amount,
                    "created_at": root.created_at.isoformat() if root.created_at else None,
                    "parts": [
                        {
                            "part_id": part.id,
                            "order_number": part.order_number,
                            "vendor_id": part.vendor_id,
                            "status": part.status.value,
                        }
                        for part in graph.parts
                    ],
                    **resolved.to_dict(),
                }
            )
        return orders

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _assert_owner(self, root, requester_email, order_identifier):
        if (root.customer_email or "").strip().lower() != (requester_email or "").strip().lower():
            logger.warning("Cancellation by non-owner refused", order_id=str(root.id))
            raise NotOrderOwner(order_identifier)

    def _notify(self, part, previous_status):
        if self.notifier is None:
            return
        try:
            result = self.notifier.status_changed(
                part.customer_email,
                {"id": part.id, "order_number": part.order_number},
                part.status.value,
                previous_status.value,
            )
        except Exception as exc:
            logger.warning("Failed to send status notification", order_id=part.id, error=str(exc))
            return
        if result and result.get("error"):
            logger.warning("Status notification not sent", order_id=part.id, error=result["error"])


def build_order_status_service() -> OrderStatusService:
    """Wire the service to the configured ledgers and notifier."""
    return OrderStatusService(
        stock_ledger=get_stock_ledger(),
        commission_ledger=get_commission_ledger(),
        notifier=get_status_notifier(),
    )
