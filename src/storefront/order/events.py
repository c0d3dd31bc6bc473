"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into a pending order with reserved stock."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    user_email = String()
    total_amount = Float(required=True)
    items = Text(required=True)  # JSON: list of frozen line dicts
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentInitiated:
    """A gateway transaction was opened for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_token = String(required=True)


@storefront.event(part_of="Order")
class PaymentAuthorized:
    """The gateway authorised the payment; the order is confirmed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    user_email = String()
    amount = Float(required=True)
    authorization_code = String()
    authorized_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentRejected:
    """The gateway rejected the payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    user_email = String()
    gateway_status = String()
    response_code = String()


@storefront.event(part_of="Order")
class PaymentRefunded:
    """A paid order was refunded through the gateway."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    user_email = String()
    amount = Float(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; reserved stock is returned separately."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    user_email = String()
    reason = String()
    cancelled_by = String(required=True)
    refunded = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusAdvanced:
    """An administrator moved the order along the fulfilment path."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    user_email = String()
    previous_status = String(required=True)
    new_status = String(required=True)
