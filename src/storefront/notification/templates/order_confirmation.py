"""Order confirmation template — sent when an order is placed."""


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total_amount = context.get("total_amount", 0.0)
        return {
            "subject": f"Order {order_number} received",
            "body": (
                f"We received your order {order_number}.\n\n"
                f"Order Total: ${total_amount:,.2f}\n\n"
                "Complete the payment to confirm it. Unpaid orders do not reserve stock forever.\n"
            ),
        }
