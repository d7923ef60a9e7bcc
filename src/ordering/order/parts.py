"""OrderPart — one normalised view over every kind of order record.

Admin parts and legacy vendor parts are ``Order`` records; current vendor
parts are ``VendorOrder`` records; an unsplit root is its own single part.
``OrderPart`` reads whichever record it is given once, normalises its
status, and exposes the same capabilities for all of them so callers never
branch on storage shape.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ordering.order.status import OrderStatus, PartialType, is_cancelled, normalize_status


class PartKind(Enum):
    ROOT = "root"
    ADMIN_PART = "admin_part"
    LEGACY_VENDOR_PART = "legacy_vendor_part"
    VENDOR_ORDER = "vendor_order"


@dataclass(frozen=True)
class OrderPart:
    record: object
    kind: PartKind
    id: str
    parent_id: str | None
    order_number: str
    vendor_id: str | None
    status: OrderStatus
    total_amount: float
    commission_amount: float
    commission_reversed: bool
    stock_restored: bool
    customer_email: str
    created_at: datetime | None

    # -------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------
    @classmethod
    def from_admin_part(cls, order):
        return cls._from(order, PartKind.ADMIN_PART, vendor_id=None)

    @classmethod
    def from_legacy_vendor_part(cls, order):
        return cls._from(order, PartKind.LEGACY_VENDOR_PART, vendor_id=order.vendor_id)

    @classmethod
    def from_vendor_order(cls, vendor_order):
        return cls._from(vendor_order, PartKind.VENDOR_ORDER, vendor_id=vendor_order.vendor_id)

    @classmethod
    def from_root(cls, order):
        return cls._from(order, PartKind.ROOT, vendor_id=None)

    @classmethod
    def from_record(cls, record):
        """Pick the constructor that matches the record's shape."""
        from ordering.vendor_order.vendor_order import VendorOrder

        if isinstance(record, VendorOrder):
            return cls.from_vendor_order(record)
        if record.partial_type == PartialType.VENDOR_PART.value:
            return cls.from_legacy_vendor_part(record)
        if record.partial_type == PartialType.ADMIN_PART.value:
            return cls.from_admin_part(record)
        return cls.from_root(record)

    @classmethod
    def _from(cls, record, kind, vendor_id):
        return cls(
            record=record,
            kind=kind,
            id=str(record.id),
            parent_id=str(record.parent_id) if record.parent_id else None,
            order_number=record.order_number,
            vendor_id=str(vendor_id) if vendor_id else None,
            status=normalize_status(record.status),
            total_amount=record.total_amount or 0.0,
            commission_amount=record.commission_amount or 0.0,
            commission_reversed=bool(record.commission_reversed),
            stock_restored=bool(record.stock_restored),
            customer_email=record.customer_email,
            created_at=record.created_at,
        )

    # -------------------------------------------------------------------
    # Capabilities
    # -------------------------------------------------------------------
    @property
    def is_vendor_part(self):
        return self.kind in (PartKind.LEGACY_VENDOR_PART, PartKind.VENDOR_ORDER)

    @property
    def is_active(self):
        return not is_cancelled(self.status)

    @property
    def dedupe_key(self):
        return (self.vendor_id, self.order_number)

    def stock_lines(self):
        """``(product_id, quantity)`` for every line this part fulfils; dropped items are left out."""
        items = self.record.items if self.kind == PartKind.VENDOR_ORDER else self.record.active_items
        return [(str(item.product_id), item.quantity) for item in items]

    def refreshed(self):
        """Re-read the underlying record after it was mutated."""
        return OrderPart.from_record(self.record)
