"""Order aggregate (CQRS) — customer checkouts and the parts they split into.

The same shape stores three kinds of record:

    root            parent_id empty, partial_type "none"
    admin part      parent_id set, partial_type "admin_part"
    vendor part     parent_id set, partial_type "vendor_part", vendor_id set

Vendor parts stored this way predate the VendorOrder aggregate; new vendor
parts are always written as VendorOrder records.

A root with parts is a split root: its own ``status`` is advisory and the
canonical status is resolved from its parts.

``status`` is stored as written; older records may still carry values such
as ``Pending`` or ``Confirmed``. Reads normalise it through
``ordering.order.status.normalize_status``.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelledByCustomer,
    OrderItemsCancelled,
    OrderPlaced,
    OrderSplit,
    OrderStatusChanged,
)
from ordering.order.status import (
    Actor,
    OrderStatus,
    OrderType,
    PartialType,
    is_cancelled,
    normalize_status,
)

ITEM_CANCELLED = "cancelled"


@ordering.entity(part_of="Order")
class LineItem:
    product_id = Identifier(required=True)
    vendor_id = Identifier()  # Empty for items the platform fulfils itself
    title = String(max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    status = String(max_length=50)  # Empty while active, "cancelled" once the customer drops it
    cancellation_reason = String(max_length=500)
    cancelled_at = DateTime()

    @property
    def line_total(self):
        return round(self.unit_price * self.quantity, 2)

    @property
    def is_cancelled(self):
        return self.status == ITEM_CANCELLED


@ordering.entity(part_of="Order")
class StatusHistoryEntry:
    """One append-only record of a status write."""

    status = String(required=True, max_length=50)
    previous_status = String(max_length=50)
    actor = String(required=True, choices=Actor)
    reason = String(max_length=500)
    recorded_at = DateTime(required=True)


@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=100)
    customer_email = String(required=True, max_length=254)
    customer_name = String(max_length=255)
    phone = String(max_length=50)
    address = String(max_length=500)
    city = String(max_length=100)
    payment_method = String(max_length=50)

    parent_id = Identifier()
    order_type = String(choices=OrderType, default=OrderType.ADMIN_ONLY.value)
    partial_type = String(choices=PartialType, default=PartialType.NONE.value)
    vendor_id = Identifier()

    status = String(max_length=50, default=OrderStatus.PLACED.value)
    items = HasMany(LineItem)
    total_amount = Float(default=0.0, min_value=0.0)
    commission_amount = Float(default=0.0, min_value=0.0)

    cancelled_by = String(choices=Actor)
    cancellation_reason = String(max_length=500)
    cancelled_at = DateTime()

    commission_reversed = Boolean(default=False)
    stock_restored = Boolean(default=False)
    is_split = Boolean(default=False)
    split_at = DateTime()

    status_history = HasMany(StatusHistoryEntry)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def part_must_reference_parent(self):
        if self.partial_type != PartialType.NONE.value and not self.parent_id:
            raise ValidationError({"parent_id": ["An order part must reference its parent order"]})

    @invariant.post
    def vendor_part_must_name_vendor(self):
        if self.partial_type == PartialType.VENDOR_PART.value and not self.vendor_id:
            raise ValidationError({"vendor_id": ["A vendor part must name its vendor"]})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_email,
        items_data,
        customer_name=None,
        phone=None,
        address=None,
        city=None,
        payment_method=None,
    ):
        """Create a root order at checkout, deriving its type from the items' vendors."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        items = [
            LineItem(
                product_id=item["product_id"],
                vendor_id=item.get("vendor_id"),
                title=item.get("title"),
                unit_price=item["unit_price"],
                quantity=item["quantity"],
            )
            for item in items_data
        ]

        order = cls(
            order_number=order_number,
            customer_email=customer_email,
            customer_name=customer_name,
            phone=phone,
            address=address,
            city=city,
            payment_method=payment_method,
            order_type=derive_order_type(items).value,
            partial_type=PartialType.NONE.value,
            status=OrderStatus.PLACED.value,
            items=items,
            total_amount=round(sum(item.line_total for item in items), 2),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_email=order.customer_email,
                order_type=order.order_type,
                total_amount=order.total_amount,
                placed_at=now,
            )
        )
        return order

    @classmethod
    def admin_part_of(cls, root, items, status=OrderStatus.PROCESSING):
        """Build the admin part of a split root from the items it fulfils itself."""
        now = datetime.now(UTC)
        line_items = [
            LineItem(
                product_id=item.product_id,
                title=item.title,
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in items
        ]
        return cls(
            order_number=f"{root.order_number}-ADMIN",
            customer_email=root.customer_email,
            customer_name=root.customer_name,
            phone=root.phone,
            address=root.address,
            city=root.city,
            payment_method=root.payment_method,
            parent_id=str(root.id),
            order_type=OrderType.ADMIN_ONLY.value,
            partial_type=PartialType.ADMIN_PART.value,
            status=status.value,
            items=line_items,
            total_amount=round(sum(item.line_total for item in line_items), 2),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_root(self):
        return not self.parent_id

    @property
    def active_items(self):
        return [item for item in self.items if not item.is_cancelled]

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def record_status(self, new_status: OrderStatus, actor: Actor, reason=None, previous_status=None) -> None:
        """Write a new status and append it to the history.

        ``previous_status`` is the normalised value the caller decided on;
        the stored raw value is used when it is not given.
        """
        now = datetime.now(UTC)
        previous = previous_status.value if previous_status else self.status

        self.status = new_status.value
        if is_cancelled(new_status):
            self.cancelled_by = actor.value
            self.cancellation_reason = reason
            self.cancelled_at = now
        self.updated_at = now

        self.add_status_history(
            StatusHistoryEntry(
                status=new_status.value,
                previous_status=previous,
                actor=actor.value,
                reason=reason,
                recorded_at=now,
            )
        )
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                parent_id=str(self.parent_id) if self.parent_id else None,
                previous_status=previous,
                new_status=new_status.value,
                actor=actor.value,
                reason=reason,
                changed_at=now,
            )
        )

    def cancel_by_customer(self, requested_for, cancelled_parts, reason=None) -> None:
        """Close out a customer cancellation on the root after its parts were cancelled."""
        current = normalize_status(self.status)
        if current != OrderStatus.CANCELLED_BY_CUSTOMER:
            self.record_status(OrderStatus.CANCELLED_BY_CUSTOMER, Actor.CUSTOMER, reason, previous_status=current)

        self.raise_(
            OrderCancelledByCustomer(
                order_id=str(self.id),
                requested_for=str(requested_for),
                cancelled_parts=json.dumps(list(cancelled_parts)),
                reason=reason,
                cancelled_at=self.cancelled_at or datetime.now(UTC),
            )
        )

    def cancel_items(self, item_ids, reason=None):
        """Drop individual items from an order that was not forwarded to vendors.

        The total shrinks by the dropped lines. The order keeps its status
        while any item is still active and is cancelled with the last one.
        Returns the cancelled items.
        """
        if not self.is_root or self.is_split:
            raise ValidationError(
                {"order": ["Items can only be cancelled on an order that was not forwarded to vendors"]}
            )

        current = normalize_status(self.status)
        if current not in (OrderStatus.PLACED, OrderStatus.PROCESSING):
            raise ValidationError({"status": [f"Cannot cancel items. Order has already been {current.value}"]})

        wanted = {str(item_id) for item_id in item_ids or []}
        if not wanted:
            raise ValidationError({"item_ids": ["Name at least one item to cancel"]})

        by_id = {str(item.id): item for item in self.items}
        unknown = sorted(wanted - by_id.keys())
        if unknown:
            raise ValidationError({"item_ids": [f"Items not on this order: {', '.join(unknown)}"]})
        already = sorted(item_id for item_id in wanted if by_id[item_id].is_cancelled)
        if already:
            raise ValidationError({"item_ids": [f"Items already cancelled: {', '.join(already)}"]})

        now = datetime.now(UTC)
        cancelled = [item for item in self.items if str(item.id) in wanted]
        for item in cancelled:
            item.status = ITEM_CANCELLED
            item.cancellation_reason = reason or "Cancelled by customer"
            item.cancelled_at = now

        refund = round(sum(item.line_total for item in cancelled), 2)
        self.total_amount = max(round(self.total_amount - refund, 2), 0.0)
        self.updated_at = now

        remaining = self.active_items
        if remaining:
            self.order_type = derive_order_type(remaining).value

        self.raise_(
            OrderItemsCancelled(
                order_id=str(self.id),
                item_ids=json.dumps([str(item.id) for item in cancelled]),
                refund_amount=refund,
                remaining_total=self.total_amount,
                reason=reason,
                cancelled_at=now,
            )
        )

        if not remaining:
            self.record_status(
                OrderStatus.CANCELLED_BY_CUSTOMER,
                Actor.CUSTOMER,
                reason or "All items cancelled by customer",
                previous_status=current,
            )
        return cancelled

    def mark_commission_reversed(self):
        self.commission_reversed = True
        self.updated_at = datetime.now(UTC)

    def mark_stock_restored(self):
        self.stock_restored = True
        self.updated_at = datetime.now(UTC)

    def mark_split(self, admin_part_id=None, vendor_part_ids=None):
        """Flag the root as split so the splitter never runs on it twice."""
        if self.is_split:
            raise ValidationError({"order": ["Order has already been split"]})

        now = datetime.now(UTC)
        self.is_split = True
        self.split_at = now
        self.updated_at = now

        self.raise_(
            OrderSplit(
                order_id=str(self.id),
                admin_part_id=admin_part_id,
                vendor_part_ids=json.dumps(list(vendor_part_ids or [])),
                split_at=now,
            )
        )


def derive_order_type(items) -> OrderType:
    vendors = [item.vendor_id for item in items]
    if not any(vendors):
        return OrderType.ADMIN_ONLY
    if all(vendors):
        return OrderType.VENDOR_ONLY
    return OrderType.MIXED
