"""Order placement — command and handler."""

import json
from uuid import uuid4

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order
from ordering.stock import get_stock_ledger


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_email = String(required=True, max_length=254)
    items = Text(required=True)  # JSON: list of {product_id, vendor_id?, title, unit_price, quantity}
    order_number = String(max_length=100)  # Generated when omitted
    customer_name = String(max_length=255)
    phone = String(max_length=50)
    address = String(max_length=500)
    city = String(max_length=100)
    payment_method = String(max_length=50)
    customer_id = Identifier()


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        order = Order.place(
            order_number=command.order_number or f"ORD-{uuid4().hex[:8].upper()}",
            customer_email=command.customer_email,
            items_data=items_data,
            customer_name=command.customer_name,
            phone=command.phone,
            address=command.address,
            city=command.city,
            payment_method=command.payment_method,
        )
        current_domain.repository_for(Order).add(order)

        stock_ledger = get_stock_ledger()
        for item in order.items:
            result = stock_ledger.reserve(str(item.product_id), item.quantity)
            if not result.get("success"):
                logger.warning(
                    "Failed to reserve stock",
                    order_id=str(order.id),
                    product_id=str(item.product_id),
                    error=result.get("error"),
                )

        return str(order.id)
