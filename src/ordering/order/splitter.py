"""OrderSplitter — forwards a mixed order by carving it into parts.

Items with no vendor go to a single admin part (an ``Order`` record the
platform fulfils itself); every vendor gets its own ``VendorOrder`` with the
commission the platform takes on it. Parts inherit the root's customer,
shipping and payment details.

Splitting is best effort. A part that fails to save is logged and reported
in the result while the parts already saved stay in place. The root is only
marked split once at least one part exists, so a split that created
nothing can be retried.
"""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError

from ordering.commission import get_commission_rate
from ordering.domain import logger
from ordering.order.graph import OrderGraphRepository
from ordering.order.order import Order
from ordering.order.status import OrderStatus, OrderType, normalize_status
from ordering.vendor_order.vendor_order import VendorOrder

_SPLITTABLE = {OrderStatus.PLACED, OrderStatus.PROCESSING}


@dataclass
class SplitResult:
    root_id: str
    admin_part_id: str | None = None
    vendor_part_ids: list[str] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    @property
    def split(self):
        return bool(self.admin_part_id or self.vendor_part_ids)

    def to_dict(self):
        return {
            "order_id": self.root_id,
            "admin_part_id": self.admin_part_id,
            "vendor_part_ids": list(self.vendor_part_ids),
            "failures": list(self.failures),
        }


class OrderSplitter:
    def __init__(self, commission_ledger, graphs=None, commission_rate=None):
        self.commission_ledger = commission_ledger
        self.graphs = graphs or OrderGraphRepository()
        self.commission_rate = get_commission_rate() if commission_rate is None else commission_rate

    def split(self, root: Order) -> SplitResult:
        if not root.is_root:
            raise ValidationError({"order": ["Only a root order can be split"]})
        if root.is_split:
            raise ValidationError({"order": ["Order has already been split"]})
        if root.order_type != OrderType.MIXED.value:
            raise ValidationError({"order_type": ["Only orders mixing admin and vendor items are split"]})

        status = normalize_status(root.status)
        if status not in _SPLITTABLE:
            raise ValidationError({"status": [f"Cannot split an order that is {status.value}"]})

        admin_items = []
        vendor_items = {}
        for item in root.active_items:
            if item.vendor_id:
                vendor_items.setdefault(str(item.vendor_id), []).append(item)
            else:
                admin_items.append(item)

        result = SplitResult(root_id=str(root.id))

        if admin_items:
            try:
                admin_part = self.graphs.save(Order.admin_part_of(root, admin_items))
                result.admin_part_id = str(admin_part.id)
            except Exception as exc:
                logger.warning("Failed to create admin part", order_id=str(root.id), error=str(exc))
                result.failures.append({"part": "admin", "error": str(exc)})

        for vendor_id, items in vendor_items.items():
            try:
                vendor_order = self.graphs.save(VendorOrder.split_from(root, vendor_id, items, self.commission_rate))
            except Exception as exc:
                logger.warning(
                    "Failed to create vendor part",
                    order_id=str(root.id),
                    vendor_id=vendor_id,
                    error=str(exc),
                )
                result.failures.append({"part": "vendor", "vendor_id": vendor_id, "error": str(exc)})
                continue

            result.vendor_part_ids.append(str(vendor_order.id))
            self._accrue_commission(vendor_order)

        if result.split:
            root.mark_split(admin_part_id=result.admin_part_id, vendor_part_ids=result.vendor_part_ids)
            self.graphs.save(root)
            logger.info(
                "Order split",
                order_id=str(root.id),
                admin_part_id=result.admin_part_id,
                vendor_parts=len(result.vendor_part_ids),
                failures=len(result.failures),
            )
        else:
            logger.warning("Order split created no parts", order_id=str(root.id), failures=len(result.failures))

        return result

    def _accrue_commission(self, vendor_order):
        if not vendor_order.commission_amount:
            return
        try:
            self.commission_ledger.accrue(
                vendor_id=vendor_order.vendor_id,
                month=vendor_order.created_at.month,
                year=vendor_order.created_at.year,
                root_id=vendor_order.parent_id,
                part_id=str(vendor_order.id),
                amount=vendor_order.commission_amount,
                sales_amount=vendor_order.total_amount,
            )
        except Exception as exc:
            logger.warning(
                "Failed to accrue commission",
                vendor_order_id=str(vendor_order.id),
                vendor_id=vendor_order.vendor_id,
                error=str(exc),
            )
