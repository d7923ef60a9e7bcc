"""Item cancellation — command and handler.

Customers drop single items from an order that has not been forwarded to
vendors yet. Once vendor parts exist the whole order has to be cancelled.
"""

import json

from protean import handle
from protean.fields import String, Text

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.service import build_order_status_service


@ordering.command(part_of="Order")
class CancelOrderItems:
    order_identifier = String(required=True, max_length=100)
    customer_email = String(required=True, max_length=254)
    item_ids = Text(required=True)  # JSON: list of line item ids
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class CancelOrderItemsHandler:
    @handle(CancelOrderItems)
    def cancel_items(self, command):
        return build_order_status_service().cancel_items(
            command.order_identifier,
            command.customer_email,
            json.loads(command.item_ids),
            reason=command.reason,
        )
