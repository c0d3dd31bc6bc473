"""Order cancellation template."""


class OrderCancellationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        reason = context.get("reason") or "No reason given"
        refund_line = "A refund has been issued to your original payment method.\n" if context.get("refunded") else ""
        return {
            "subject": f"Order {order_number} cancelled",
            "body": f"Your order {order_number} was cancelled.\n\nReason: {reason}\n\n{refund_line}",
        }
