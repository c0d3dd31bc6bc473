"""Payment bookkeeping on the order — commands and handler.

The gateway itself is driven by the payment bridge; these commands only
record what the gateway answered.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class AttachGatewayToken:
    order_id = Identifier(required=True)
    gateway_token = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class RecordPaymentOutcome:
    order_id = Identifier(required=True)
    authorized = Boolean(required=True)
    gateway_status = String(max_length=50)
    authorization_code = String(max_length=50)
    response_code = String(max_length=20)


@storefront.command(part_of="Order")
class RecordRefund:
    order_id = Identifier(required=True)
    amount = Float(required=True)
    gateway_status = String(max_length=50)


@storefront.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(AttachGatewayToken)
    def attach_gateway_token(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.attach_gateway_token(command.gateway_token)
        repo.add(order)

    @handle(RecordPaymentOutcome)
    def record_payment_outcome(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.is_payment_settled:
            # A concurrent confirmation got there first
            return
        if command.authorized:
            order.record_payment_authorized(
                gateway_status=command.gateway_status,
                authorization_code=command.authorization_code,
            )
        else:
            order.record_payment_rejected(
                gateway_status=command.gateway_status,
                response_code=command.response_code,
            )
        repo.add(order)

    @handle(RecordRefund)
    def record_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_refund(amount=command.amount, gateway_status=command.gateway_status)
        repo.add(order)
