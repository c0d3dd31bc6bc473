"""Template registry — maps notification kinds to template classes."""

from storefront.notification.templates.order_cancellation import OrderCancellationTemplate
from storefront.notification.templates.order_confirmation import OrderConfirmationTemplate
from storefront.notification.templates.payment_failed import PaymentFailedTemplate
from storefront.notification.templates.payment_receipt import PaymentReceiptTemplate
from storefront.notification.templates.refund_notification import RefundNotificationTemplate
from storefront.notification.templates.status_update import StatusUpdateTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    "order_confirmation": OrderConfirmationTemplate,
    "payment_receipt": PaymentReceiptTemplate,
    "payment_failed": PaymentFailedTemplate,
    "order_cancellation": OrderCancellationTemplate,
    "refund_notification": RefundNotificationTemplate,
    "status_update": StatusUpdateTemplate,
}


def render(kind: str, context: dict) -> dict:
    return TEMPLATE_REGISTRY[kind].render(context)
