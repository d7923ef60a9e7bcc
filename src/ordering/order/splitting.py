"""Order forwarding — split a mixed order into its admin and vendor parts."""

from protean import handle
from protean.fields import Identifier

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.service import build_order_status_service


@ordering.command(part_of="Order")
class SplitOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class SplitOrderHandler:
    @handle(SplitOrder)
    def split_order(self, command):
        service = build_order_status_service()
        result = service.split_order(command.order_id)
        service.recompute_parent(command.order_id)
        return result.to_dict()
