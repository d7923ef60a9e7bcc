"""Domain events for the VendorOrder aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="VendorOrder")
class VendorOrderCreated:
    """A vendor part was carved out of a mixed order."""

    __version__ = 1

    vendor_order_id = Identifier(required=True)
    parent_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    order_number = String(required=True)
    total_amount = Float(required=True)
    commission_amount = Float()
    created_at = DateTime(required=True)


@ordering.event(part_of="VendorOrder")
class VendorOrderStatusChanged:
    """A vendor part moved to a new status."""

    __version__ = 1

    vendor_order_id = Identifier(required=True)
    parent_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)
