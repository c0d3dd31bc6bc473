"""Order placement — command and handler."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    user_email = String(max_length=255)
    items = Text(required=True)  # JSON: list of {product_id, product_name, quantity, unit_price}
    shipping_address = Text(required=True)  # JSON: address dict
    notes = Text()


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            user_id=command.user_id,
            lines=json.loads(command.items),
            shipping_address=json.loads(command.shipping_address),
            notes=command.notes,
            user_email=command.user_email,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
