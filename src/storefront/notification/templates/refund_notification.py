"""Refund notification template."""


class RefundNotificationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        amount = context.get("amount", 0.0)
        return {
            "subject": f"Refund issued for order {order_number}",
            "body": (
                f"A refund of ${amount:,.2f} for order {order_number} has been processed.\n\n"
                "It may take a few business days to appear on your statement.\n"
            ),
        }
