"""Part status changes — command and handler for vendors, admins and the system."""

from protean import handle
from protean.fields import Identifier, String

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.service import build_order_status_service
from ordering.order.status import Actor


@ordering.command(part_of="Order")
class ChangePartStatus:
    part_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    actor = String(required=True, choices=Actor)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class ChangePartStatusHandler:
    @handle(ChangePartStatus)
    def change_part_status(self, command):
        return build_order_status_service().change_status(
            command.part_id,
            command.status,
            command.actor,
            reason=command.reason,
        )
