"""Order notifications — emails the customer when their order changes.

Delivery is best effort: a failed or crashing email channel is logged and
never fails the operation that raised the event. Each event is delivered
once, so an idempotent payment confirmation sends nothing the second time.
"""

import structlog
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.notification.channel import get_email_channel
from storefront.notification.email_port import EmailMessage
from storefront.notification.templates import render
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusAdvanced,
    PaymentAuthorized,
    PaymentRefunded,
    PaymentRejected,
)
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


def notify(kind: str, event, context: dict) -> None:
    if not event.user_email:
        logger.info("No email on order, notification skipped", kind=kind, order_id=str(event.order_id))
        return

    try:
        rendered = render(kind, {"order_number": event.order_number, **context})
        receipt = get_email_channel().deliver(
            EmailMessage(
                to=event.user_email,
                subject=rendered["subject"],
                body=rendered["body"],
                order_number=event.order_number,
            )
        )
    except Exception:
        logger.exception("Notification dispatch crashed", kind=kind, order_id=str(event.order_id))
        return

    if not receipt.delivered:
        logger.warning("Notification not delivered", kind=kind, order_id=str(event.order_id), error=receipt.error)


@storefront.event_handler(part_of=Order)
class OrderNotificationsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        notify("order_confirmation", event, {"total_amount": event.total_amount})

    @handle(PaymentAuthorized)
    def on_payment_authorized(self, event: PaymentAuthorized) -> None:
        notify(
            "payment_receipt",
            event,
            {"amount": event.amount, "authorization_code": event.authorization_code},
        )

    @handle(PaymentRejected)
    def on_payment_rejected(self, event: PaymentRejected) -> None:
        notify("payment_failed", event, {})

    @handle(PaymentRefunded)
    def on_payment_refunded(self, event: PaymentRefunded) -> None:
        notify("refund_notification", event, {"amount": event.amount})

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        notify("order_cancellation", event, {"reason": event.reason, "refunded": event.refunded})

    @handle(OrderStatusAdvanced)
    def on_status_advanced(self, event: OrderStatusAdvanced) -> None:
        notify("status_update", event, {"new_status": event.new_status})
