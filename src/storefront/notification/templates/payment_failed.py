"""Payment failure template — sent when the gateway rejects or the customer aborts."""


class PaymentFailedTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": f"Payment not completed for order {order_number}",
            "body": (
                f"The payment for order {order_number} was not completed.\n\n"
                "No charge was made and the reserved items were released. "
                "You can place a new order at any time.\n"
            ),
        }
