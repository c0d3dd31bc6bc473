"""Payment receipt template — sent when the gateway authorises the payment."""


class PaymentReceiptTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        amount = context.get("amount", 0.0)
        authorization_code = context.get("authorization_code") or "N/A"
        return {
            "subject": f"Payment confirmed for order {order_number}",
            "body": (
                f"Your payment of ${amount:,.2f} for order {order_number} was approved.\n\n"
                f"Authorization code: {authorization_code}\n\n"
                "We'll let you know when your order ships.\n"
            ),
        }
