"""Domain events for the Order aggregate (roots, admin parts, legacy vendor parts)."""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A customer checkout produced a new root order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    order_type = String(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderSplit:
    """A mixed root was decomposed into an admin part and vendor parts."""

    __version__ = 1

    order_id = Identifier(required=True)
    admin_part_id = Identifier()
    vendor_part_ids = Text()  # JSON: list of VendorOrder ids
    split_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """A root or part moved to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    parent_id = Identifier()
    previous_status = String(required=True)
    new_status = String(required=True)
    actor = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelledByCustomer:
    """The customer cancelled an order; every part was forced into a cancelled state."""

    __version__ = 1

    order_id = Identifier(required=True)
    requested_for = Identifier(required=True)  # root or part the customer addressed
    cancelled_parts = Text()  # JSON: list of part ids
    reason = String()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderItemsCancelled:
    """The customer dropped items from an order before it was forwarded to vendors."""

    __version__ = 1

    order_id = Identifier(required=True)
    item_ids = Text(required=True)  # JSON: list of line item ids
    refund_amount = Float(required=True)
    remaining_total = Float(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
