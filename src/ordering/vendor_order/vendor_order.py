"""VendorOrder aggregate (CQRS) — the part of a split order one vendor fulfils.

Vendors work their own queue of VendorOrders; each one points back at the
root Order it was split from and carries the commission the platform
accrued on it.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.status import Actor, OrderStatus, is_cancelled
from ordering.vendor_order.events import VendorOrderCreated, VendorOrderStatusChanged


@ordering.entity(part_of="VendorOrder")
class VendorOrderItem:
    product_id = Identifier(required=True)
    title = String(max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self):
        return round(self.unit_price * self.quantity, 2)


@ordering.entity(part_of="VendorOrder")
class VendorOrderHistoryEntry:
    status = String(required=True, max_length=50)
    previous_status = String(max_length=50)
    actor = String(required=True, choices=Actor)
    reason = String(max_length=500)
    recorded_at = DateTime(required=True)


@ordering.aggregate
class VendorOrder:
    parent_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    order_number = String(required=True, max_length=100)
    customer_email = String(required=True, max_length=254)
    customer_name = String(max_length=255)
    phone = String(max_length=50)
    address = String(max_length=500)
    city = String(max_length=100)
    payment_method = String(max_length=50)

    status = String(max_length=50, default=OrderStatus.PLACED.value)
    items = HasMany(VendorOrderItem)
    total_amount = Float(default=0.0, min_value=0.0)
    commission_amount = Float(default=0.0, min_value=0.0)

    cancelled_by = String(choices=Actor)
    cancellation_reason = String(max_length=500)
    cancelled_at = DateTime()

    commission_reversed = Boolean(default=False)
    stock_restored = Boolean(default=False)
    split_from_mixed_order = Boolean(default=False)

    status_history = HasMany(VendorOrderHistoryEntry)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def split_from(cls, root, vendor_id, items, commission_rate):
        """Carve one vendor's items out of a mixed root.

        The order number keeps the root's number and appends the last four
        characters of the vendor id, e.g. ``ORD-1001-V7f3a``.
        """
        now = datetime.now(UTC)
        line_items = [
            VendorOrderItem(
                product_id=item.product_id,
                title=item.title,
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in items
        ]
        total = round(sum(item.line_total for item in line_items), 2)

        vendor_order = cls(
            parent_id=str(root.id),
            vendor_id=str(vendor_id),
            order_number=f"{root.order_number}-V{str(vendor_id)[-4:]}",
            customer_email=root.customer_email,
            customer_name=root.customer_name,
            phone=root.phone,
            address=root.address,
            city=root.city,
            payment_method=root.payment_method,
            status=OrderStatus.PLACED.value,
            items=line_items,
            total_amount=total,
            commission_amount=round(total * commission_rate, 2),
            split_from_mixed_order=True,
            created_at=now,
            updated_at=now,
        )
        vendor_order.raise_(
            VendorOrderCreated(
                vendor_order_id=str(vendor_order.id),
                parent_id=vendor_order.parent_id,
                vendor_id=vendor_order.vendor_id,
                order_number=vendor_order.order_number,
                total_amount=vendor_order.total_amount,
                commission_amount=vendor_order.commission_amount,
                created_at=now,
            )
        )
        return vendor_order

    def record_status(self, new_status: OrderStatus, actor: Actor, reason=None, previous_status=None) -> None:
        now = datetime.now(UTC)
        previous = previous_status.value if previous_status else self.status

        self.status = new_status.value
        if is_cancelled(new_status):
            self.cancelled_by = actor.value
            self.cancellation_reason = reason
            self.cancelled_at = now
        self.updated_at = now

        self.add_status_history(
            VendorOrderHistoryEntry(
                status=new_status.value,
                previous_status=previous,
                actor=actor.value,
                reason=reason,
                recorded_at=now,
            )
        )
        self.raise_(
            VendorOrderStatusChanged(
                vendor_order_id=str(self.id),
                parent_id=str(self.parent_id),
                vendor_id=str(self.vendor_id),
                previous_status=previous,
                new_status=new_status.value,
                actor=actor.value,
                reason=reason,
                changed_at=now,
            )
        )

    def mark_commission_reversed(self):
        self.commission_reversed = True
        self.updated_at = datetime.now(UTC)

    def mark_stock_restored(self):
        self.stock_restored = True
        self.updated_at = datetime.now(UTC)
