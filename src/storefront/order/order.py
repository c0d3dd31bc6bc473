"""Order aggregate — an immutable price snapshot with two lifecycles.

Fulfilment status:
    pending → confirmed → processing → shipped → delivered
    pending / confirmed / processing → cancelled

Payment status:
    pending → paid → refunded
    pending → failed

Line items, unit prices and the total are frozen when the order is placed.
Afterwards only the statuses, the gateway token and echo fields, notes and
the cancellation bookkeeping change.
"""

import json
import random
import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.errors import EmptyCartError, InvalidStateTransitionError
from storefront.inventory.guard import StockLine
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusAdvanced,
    PaymentAuthorized,
    PaymentInitiated,
    PaymentRefunded,
    PaymentRejected,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
}

_CANCELLABLE_STATES = {s for s, targets in _VALID_TRANSITIONS.items() if OrderStatus.CANCELLED in targets}

DEFAULT_PAYMENT_METHOD = "webpay"


def generate_order_number() -> str:
    """``ORD-<epoch ms>-<5 uppercase alphanumerics>``."""
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships to, captured at checkout and never edited."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)
    stock_restored = Boolean(default=False)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    user_email = String(max_length=255)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=50, default=DEFAULT_PAYMENT_METHOD)
    gateway_token = String(max_length=255)
    gateway_status = String(max_length=50)
    authorization_code = String(max_length=50)
    refunded_amount = Float()
    shipping_address = ValueObject(ShippingAddress)
    notes = Text()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    stock_restored = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    cancelled_at = DateTime()

    @invariant.post
    def total_must_match_line_subtotals(self):
        if self.items and abs(sum(item.subtotal for item in self.items) - self.total_amount) > 0.005:
            raise ValidationError({"total_amount": ["Order total must equal the sum of line subtotals"]})

    @invariant.post
    def cancelled_order_cannot_hold_payment(self):
        if self.status == OrderStatus.CANCELLED.value and self.payment_status == PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["A paid order must be refunded before it is cancelled"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, lines, shipping_address, notes=None, user_email=None):
        """Freeze cart lines into a new pending order.

        Args:
            user_id: Owner of the order.
            lines: Iterable of dicts with product_id, product_name, quantity, unit_price.
            shipping_address: ShippingAddress value object or dict.
            notes: Optional free-text notes from the customer.
            user_email: Where order notifications are sent, if known.
        """
        lines = list(lines)
        if not lines:
            raise EmptyCartError()

        items = []
        for line in lines:
            unit_price = round(float(line["unit_price"]), 2)
            items.append(
                OrderItem(
                    product_id=str(line["product_id"]),
                    product_name=line["product_name"],
                    quantity=line["quantity"],
                    unit_price=unit_price,
                    subtotal=round(unit_price * line["quantity"], 2),
                )
            )

        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress(**shipping_address)

        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(),
            user_id=user_id,
            user_email=user_email,
            items=items,
            total_amount=round(sum(item.subtotal for item in items), 2),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=DEFAULT_PAYMENT_METHOD,
            shipping_address=shipping_address,
            notes=notes,
            stock_restored=False,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                user_email=user_email,
                total_amount=order.total_amount,
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "product_name": item.product_name,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                        }
                        for item in items
                    ]
                ),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def is_payment_settled(self) -> bool:
        return self.payment_status != PaymentStatus.PENDING.value

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus(self.status) in _CANCELLABLE_STATES

    def _event_owner(self) -> dict:
        return {
            "order_id": str(self.id),
            "order_number": self.order_number,
            "user_id": str(self.user_id),
            "user_email": self.user_email,
        }

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                f"Cannot transition order from {current.value} to {target.value}",
                order_id=str(self.id),
            )

    def _assert_payment_transition(self, target: PaymentStatus) -> None:
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                f"Cannot change payment status from {current.value} to {target.value}",
                order_id=str(self.id),
            )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def attach_gateway_token(self, token):
        """Record the token of the gateway transaction opened for this order."""
        if OrderStatus(self.status) != OrderStatus.PENDING or self.is_payment_settled:
            raise InvalidStateTransitionError(
                "Payment can only be initiated for a pending order", order_id=str(self.id)
            )
        if not token:
            raise ValidationError({"gateway_token": ["Gateway token is required"]})

        self.gateway_token = token
        self.updated_at = datetime.now(UTC)

        self.raise_(PaymentInitiated(order_id=str(self.id), gateway_token=token))

    def record_payment_authorized(self, gateway_status, authorization_code=None):
        self._assert_payment_transition(PaymentStatus.PAID)
        self._assert_can_transition(OrderStatus.CONFIRMED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.status = OrderStatus.CONFIRMED.value
        self.gateway_status = gateway_status
        self.authorization_code = authorization_code
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            PaymentAuthorized(
                **self._event_owner(),
                amount=self.total_amount,
                authorization_code=authorization_code,
                authorized_at=now,
            )
        )

    def record_payment_rejected(self, gateway_status, response_code=None):
        self._assert_payment_transition(PaymentStatus.FAILED)

        self.payment_status = PaymentStatus.FAILED.value
        self.gateway_status = gateway_status
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentRejected(
                **self._event_owner(),
                gateway_status=gateway_status or "",
                response_code=response_code,
            )
        )

    def record_refund(self, amount, gateway_status=None):
        self._assert_payment_transition(PaymentStatus.REFUNDED)
        if amount <= 0 or amount > self.total_amount + 0.005:
            raise ValidationError({"amount": ["Refund amount must be positive and not exceed the order total"]})

        self.payment_status = PaymentStatus.REFUNDED.value
        self.refunded_amount = round(float(amount), 2)
        if gateway_status:
            self.gateway_status = gateway_status
        self.updated_at = datetime.now(UTC)

        self.raise_(PaymentRefunded(**self._event_owner(), amount=self.refunded_amount))

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def cancel(self, reason=None, cancelled_by="customer"):
        """Cancel the order. A paid order must be refunded first."""
        if OrderStatus(self.status) == OrderStatus.CANCELLED:
            raise InvalidStateTransitionError("Order is already cancelled", order_id=str(self.id))
        self._assert_can_transition(OrderStatus.CANCELLED)
        if self.payment_status == PaymentStatus.PAID.value:
            raise InvalidStateTransitionError("A paid order must be refunded before it is cancelled")

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                **self._event_owner(),
                reason=reason,
                cancelled_by=cancelled_by,
                refunded=self.payment_status == PaymentStatus.REFUNDED.value,
                cancelled_at=now,
            )
        )

    def advance_status(self, new_status, notes=None):
        """Move the order forward along the fulfilment path (admin only)."""
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None
        if target == OrderStatus.CANCELLED:
            raise InvalidStateTransitionError("Use order cancellation to cancel an order", order_id=str(self.id))

        self._assert_can_transition(target)

        previous = self.status
        self.status = target.value
        if notes:
            self.notes = notes
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderStatusAdvanced(
                **self._event_owner(),
                previous_status=previous,
                new_status=target.value,
            )
        )

    def claim_stock_release(self) -> list[StockLine]:
        """Claim the release of reserved stock.

        Returns the lines still owed to inventory, or an empty list when the
        stock was already given back or another caller holds the claim.
        """
        if self.stock_restored:
            return []
        self.stock_restored = True
        self.updated_at = datetime.now(UTC)
        return [
            StockLine(product_id=str(item.product_id), quantity=item.quantity)
            for item in self.items
            if not item.stock_restored
        ]

    def release_stock_claim(self, restored_product_ids) -> None:
        """Record a partial restore and give up the claim so a retry can finish it."""
        restored = {str(product_id) for product_id in restored_product_ids}
        for item in self.items:
            if str(item.product_id) in restored:
                item.stock_restored = True
        self.stock_restored = False
        self.updated_at = datetime.now(UTC)
