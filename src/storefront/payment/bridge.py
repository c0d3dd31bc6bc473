"""Payment Gateway Bridge — drives the gateway handshake and records the outcome on orders.

The gateway transaction is a side resource identified by the token stored
on the order. Confirmation is idempotent: an order whose payment is already
settled is returned as-is without contacting the gateway, and a commit the
gateway refuses because the transaction was already committed is
reconciled through a status query.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.errors import ConfigurationError, GatewayInvalidStateError, InvalidStateTransitionError
from storefront.order.order import Order, PaymentStatus
from storefront.order.payment import RecordPaymentOutcome, RecordRefund
from storefront.payment.gateway.port import OpenedTransaction, PaymentGateway, RefundResult, TransactionResult

logger = structlog.get_logger(__name__)

# Status of a transaction the customer never completed
UNSETTLED_STATUS = "INITIALIZED"


class PaymentGatewayBridge:
    def __init__(self, gateway: PaymentGateway, return_url: str | None) -> None:
        self.gateway = gateway
        self.return_url = return_url

    # -------------------------------------------------------------------
    # Open
    # -------------------------------------------------------------------
    def open(
        self, amount: float, order_reference: str, session_id: str, return_url: str | None = None
    ) -> OpenedTransaction:
        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["Payment amount must be greater than zero"]})

        return_url = return_url or self.return_url
        if not return_url:
            raise ConfigurationError("Payment return URL is not configured")

        opened = self.gateway.create(
            buy_order=order_reference,
            session_id=session_id,
            amount=amount,
            return_url=return_url,
        )
        logger.info("Gateway transaction opened", order_number=order_reference, amount=amount)
        return opened

    # -------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------
    def commit(self, order: Order) -> Order:
        """Settle the order's gateway transaction and record the outcome."""
        if order.is_payment_settled:
            logger.info(
                "Payment already settled, skipping commit",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return order

        if not order.gateway_token:
            raise InvalidStateTransitionError("No payment was initiated for this order", order_id=str(order.id))

        try:
            result = self.gateway.commit(order.gateway_token)
        except GatewayInvalidStateError:
            logger.info("Commit refused, reconciling through status query", order_id=str(order.id))
            result = self.query_status(order.gateway_token)
            if result.status == UNSETTLED_STATUS:
                raise

        current_domain.process(
            RecordPaymentOutcome(
                order_id=str(order.id),
                authorized=result.authorized,
                gateway_status=result.status,
                authorization_code=result.authorization_code,
                response_code=None if result.response_code is None else str(result.response_code),
            ),
            asynchronous=False,
        )

        logger.info(
            "Payment committed",
            order_id=str(order.id),
            authorized=result.authorized,
            gateway_status=result.status,
        )
        return current_domain.repository_for(Order).get(str(order.id))

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def query_status(self, token: str) -> TransactionResult:
        return self.gateway.status(token)

    # -------------------------------------------------------------------
    # Refund
    # -------------------------------------------------------------------
    def refund(self, order: Order, amount: float | None = None) -> RefundResult:
        if order.payment_status != PaymentStatus.PAID.value:
            raise InvalidStateTransitionError("Only paid orders can be refunded", order_id=str(order.id))

        amount = order.total_amount if amount is None else round(float(amount), 2)
        if amount <= 0 or amount > order.total_amount:
            raise ValidationError({"amount": ["Refund amount must be positive and not exceed the order total"]})

        result = self.gateway.refund(order.gateway_token, amount)

        current_domain.process(
            RecordRefund(order_id=str(order.id), amount=amount, gateway_status=result.type or None),
            asynchronous=False,
        )
        logger.info("Payment refunded", order_id=str(order.id), amount=amount, refund_type=result.type)
        return result
