"""Order status update template — processing, shipped, delivered."""

_MESSAGES = {
    "confirmed": "has been confirmed",
    "processing": "is being prepared",
    "shipped": "is on its way",
    "delivered": "was delivered",
}


class StatusUpdateTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        status = context.get("new_status", "")
        phrase = _MESSAGES.get(status, f"is now {status}")
        return {
            "subject": f"Order {order_number} {phrase}",
            "body": f"Your order {order_number} {phrase}.\n",
        }
