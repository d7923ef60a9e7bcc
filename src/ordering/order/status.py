"""Status vocabulary shared by roots, admin parts and vendor parts.

Every stored status passes through ``normalize_status`` when a record is
read into an ``OrderPart``; nothing downstream compares raw strings.
"""

from enum import Enum

from protean.exceptions import ValidationError


class OrderStatus(Enum):
    PLACED = "placed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    CANCELLED_BY_CUSTOMER = "cancelled_by_customer"
    CANCELLED_BY_USER = "cancelled_by_user"
    REJECTED = "rejected"


class Actor(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"
    SYSTEM = "system"
    SYSTEM_SYNC = "system_sync"


class OrderType(Enum):
    ADMIN_ONLY = "admin_only"
    VENDOR_ONLY = "vendor_only"
    MIXED = "mixed"


class PartialType(Enum):
    NONE = "none"
    ADMIN_PART = "admin_part"
    VENDOR_PART = "vendor_part"


CANCELLED_CLASS = frozenset(
    {
        OrderStatus.CANCELLED,
        OrderStatus.CANCELLED_BY_CUSTOMER,
        OrderStatus.CANCELLED_BY_USER,
        OrderStatus.REJECTED,
    }
)

TERMINAL = CANCELLED_CLASS | {OrderStatus.DELIVERED}

# Most specific first
CANCELLATION_PRIORITY = (
    OrderStatus.CANCELLED_BY_CUSTOMER,
    OrderStatus.CANCELLED_BY_USER,
    OrderStatus.REJECTED,
    OrderStatus.CANCELLED,
)

SYSTEM_ACTORS = frozenset({Actor.SYSTEM, Actor.SYSTEM_SYNC})

# Values written by the storefront and vendor panels before the unified enum
_LEGACY_STATUSES = {
    "Pending": OrderStatus.PLACED,
    "Confirmed": OrderStatus.PROCESSING,
    "Shipped": OrderStatus.SHIPPED,
    "Delivered": OrderStatus.DELIVERED,
    "Cancelled": OrderStatus.CANCELLED,
    "pending": OrderStatus.PLACED,
    "accepted": OrderStatus.PROCESSING,
}


def normalize_status(raw) -> OrderStatus:
    """Map a stored status, legacy or current, onto ``OrderStatus``.

    Raises ``ValidationError`` for anything outside the vocabulary.
    """
    if isinstance(raw, OrderStatus):
        return raw
    if raw is None or not str(raw).strip():
        raise ValidationError({"status": ["Status is required"]})

    value = str(raw).strip()
    if value in _LEGACY_STATUSES:
        return _LEGACY_STATUSES[value]

    try:
        return OrderStatus(value.lower())
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status '{value}'"]}) from None


def parse_status(raw) -> OrderStatus:
    """Validate a status supplied by a caller. Only current wire values are accepted."""
    if isinstance(raw, OrderStatus):
        return raw
    try:
        return OrderStatus(raw)
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status '{raw}'"]}) from None


def parse_actor(raw) -> Actor:
    if isinstance(raw, Actor):
        return raw
    try:
        return Actor(raw)
    except ValueError:
        raise ValidationError({"actor": [f"Unknown actor '{raw}'"]}) from None


def is_cancelled(status: OrderStatus) -> bool:
    return status in CANCELLED_CLASS


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL
