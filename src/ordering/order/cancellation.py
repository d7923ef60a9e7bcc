"""Customer cancellation — command and handler."""

from protean import handle
from protean.fields import String

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.service import build_order_status_service


@ordering.command(part_of="Order")
class CancelOrderByCustomer:
    order_identifier = String(required=True, max_length=100)  # id or order number, root or part
    customer_email = String(required=True, max_length=254)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class CancelOrderByCustomerHandler:
    @handle(CancelOrderByCustomer)
    def cancel_order(self, command):
        return build_order_status_service().customer_cancel(
            command.order_identifier,
            command.customer_email,
            reason=command.reason,
        )
