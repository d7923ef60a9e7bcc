"""OrderGraph — a root order together with all of its parts.

``OrderGraphRepository`` is the only place that knows parts live in two
record families. It loads the admin part and vendor parts from both
families, drops legacy vendor parts that were re-written as VendorOrders,
and hands back normalised ``OrderPart`` views.
"""

import re
from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.order.errors import OrderNotFound
from ordering.order.order import Order
from ordering.order.parts import OrderPart
from ordering.order.status import OrderType, PartialType
from ordering.vendor_order.vendor_order import VendorOrder

# "<root number>-V<vendor suffix>"
_VENDOR_PART_NUMBER = re.compile(r"^(?P<root>.+)-V(?P<suffix>[^-]+)$")


@dataclass
class OrderGraph:
    root: Order
    admin_part: OrderPart | None = None
    vendor_parts: list[OrderPart] = field(default_factory=list)

    @property
    def parts(self):
        return ([self.admin_part] if self.admin_part else []) + list(self.vendor_parts)

    @property
    def is_split(self):
        return bool(self.parts)

    @property
    def active_parts(self):
        return [part for part in self.parts if part.is_active]

    def part(self, part_id):
        return next((p for p in self.parts if p.id == str(part_id)), None)

    def replace(self, part):
        """Swap in a refreshed view of a part after it was written."""
        if self.admin_part and self.admin_part.id == part.id:
            self.admin_part = part
            return
        self.vendor_parts = [part if p.id == part.id else p for p in self.vendor_parts]


class OrderGraphRepository:
    """Loads and persists order graphs across both record families."""

    def load(self, root_or_id) -> OrderGraph:
        root = root_or_id if isinstance(root_or_id, Order) else self.get_order(root_or_id)
        if not root.is_root:
            return OrderGraph(root=root)

        children = self._orders_for_parent(root.id)
        admin_part = next(
            (OrderPart.from_admin_part(o) for o in children if o.partial_type == PartialType.ADMIN_PART.value),
            None,
        )

        vendor_parts = {}
        for vendor_order in self._vendor_orders_for_parent(root.id):
            part = OrderPart.from_vendor_order(vendor_order)
            vendor_parts[part.dedupe_key] = part

        for legacy in children:
            if legacy.partial_type != PartialType.VENDOR_PART.value:
                continue
            part = OrderPart.from_legacy_vendor_part(legacy)
            if part.dedupe_key in vendor_parts:
                logger.debug(
                    "Skipping legacy vendor part duplicated by a vendor order",
                    root_id=str(root.id),
                    part_id=part.id,
                )
                continue
            vendor_parts[part.dedupe_key] = part

        return OrderGraph(root=root, admin_part=admin_part, vendor_parts=list(vendor_parts.values()))

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> Order:
        try:
            return current_domain.repository_for(Order).get(str(order_id))
        except ObjectNotFoundError:
            raise OrderNotFound(order_id) from None

    def get_record(self, identifier):
        """Fetch an Order or VendorOrder by id."""
        for aggregate in (Order, VendorOrder):
            try:
                return current_domain.repository_for(aggregate).get(str(identifier))
            except ObjectNotFoundError:
                continue
        raise OrderNotFound(identifier)

    def get_part(self, part_id) -> OrderPart:
        return OrderPart.from_record(self.get_record(part_id))

    def find_order_or_part(self, identifier):
        """Resolve an id or order number to a record in either family.

        Order numbers of vendor parts that were never stored under their own
        number are found through the root's number and the vendor suffix.
        """
        try:
            return self.get_record(identifier)
        except OrderNotFound:
            pass

        for aggregate in (Order, VendorOrder):
            found = self._by_order_number(aggregate, identifier)
            if found is not None:
                return found

        match = _VENDOR_PART_NUMBER.match(str(identifier))
        if match:
            root = self._by_order_number(Order, match.group("root"))
            if root is not None and root.is_root:
                graph = self.load(root)
                suffix = match.group("suffix")
                part = next(
                    (p for p in graph.vendor_parts if p.vendor_id and p.vendor_id.endswith(suffix)),
                    None,
                )
                if part is not None:
                    return part.record

        raise OrderNotFound(identifier)

    def roots_for_customer(self, customer_email):
        orders = (
            current_domain.repository_for(Order)._dao.query.filter(customer_email=customer_email).all().items
        )
        roots = [order for order in orders if order.is_root]
        return sorted(roots, key=lambda o: o.created_at.isoformat() if o.created_at else "", reverse=True)

    def admin_records(self):
        """Orders the platform fulfils: admin-only roots and the admin parts of split orders."""
        roots = [o for o in self._orders_where(order_type=OrderType.ADMIN_ONLY.value) if o.is_root]
        return roots + self._orders_where(partial_type=PartialType.ADMIN_PART.value)

    def vendor_records(self):
        """Orders vendors fulfil: vendor-only roots and every vendor part in both families."""
        roots = [o for o in self._orders_where(order_type=OrderType.VENDOR_ONLY.value) if o.is_root]
        vendor_orders = current_domain.repository_for(VendorOrder)._dao.query.all().items
        known = {(str(v.vendor_id), v.order_number) for v in vendor_orders}
        legacy = [
            o
            for o in self._orders_where(partial_type=PartialType.VENDOR_PART.value)
            if (str(o.vendor_id), o.order_number) not in known
        ]
        return roots + legacy + list(vendor_orders)

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def save(self, record):
        current_domain.repository_for(type(record)).add(record)
        return record

    def save_part(self, part: OrderPart) -> OrderPart:
        self.save(part.record)
        return part.refreshed()

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _orders_where(self, **filters):
        return current_domain.repository_for(Order)._dao.query.filter(**filters).all().items

    def _orders_for_parent(self, parent_id):
        return current_domain.repository_for(Order)._dao.query.filter(parent_id=str(parent_id)).all().items

    def _vendor_orders_for_parent(self, parent_id):
        return current_domain.repository_for(VendorOrder)._dao.query.filter(parent_id=str(parent_id)).all().items

    def _by_order_number(self, aggregate, order_number):
        found = current_domain.repository_for(aggregate)._dao.query.filter(order_number=str(order_number)).all().items
        return found[0] if found else None
