"""Checkout Orchestrator — Cart → Inventory → Order → Payment.

Composes the inventory guard, the cart, the order aggregate and the payment
bridge into the customer-facing use cases, and owns compensation when a
multi-step operation fails halfway.

Create order:
    1. Validate the shipping address and read the cart (empty → EmptyCartError)
    2. Reserve stock for every line (all-or-nothing; nothing else happens on failure)
    3. Persist the order as pending/pending with frozen prices
    4. Open the gateway transaction and store its token on the order
    5. Clear the cart
    If step 4 fails, the stock is restored and the order is cancelled
    before the error is re-raised.

Confirm payment:
    Look up the order by gateway token and commit. Repeating the call is
    safe. A rejected or aborted payment releases the reserved stock; the
    order stays pending so the customer can cancel it.

Cancel order:
    Refund first when paid, then cancel and restore stock exactly once.
"""

import json
import time
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart.items import ClearCart, cart_for
from storefront.config import Settings, get_settings
from storefront.errors import (
    EmptyCartError,
    ForbiddenError,
    GatewayAbortedError,
    InvalidStateTransitionError,
    NotFoundError,
    StockRestoreError,
    StorefrontError,
)
from storefront.identity import AuthContext
from storefront.inventory.guard import InventoryGuard, StockLine
from storefront.order.cancellation import CancelOrder, ClaimStockRelease, ReleaseStockClaim
from storefront.order.order import Order, OrderStatus, PaymentStatus, ShippingAddress
from storefront.order.payment import AttachGatewayToken, RecordPaymentOutcome
from storefront.order.placement import PlaceOrder
from storefront.payment.bridge import PaymentGatewayBridge
from storefront.payment.gateway.port import PaymentGateway, RefundResult
from storefront.utils.logging import add_context

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    token: str
    redirect_url: str


@dataclass(frozen=True)
class CancellationResult:
    order: Order
    refund_processed: bool


@dataclass(frozen=True)
class RefundOutcome:
    order: Order
    refund: RefundResult
    cancelled: bool


def session_id_for(user_id) -> str:
    return f"session_{user_id}_{int(time.time() * 1000)}"


class CheckoutOrchestrator:
    def __init__(
        self,
        gateway: PaymentGateway,
        settings: Settings | None = None,
        guard: InventoryGuard | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.bridge = PaymentGatewayBridge(gateway, return_url=settings.payment_return_url)
        self.guard = guard or InventoryGuard()

    @property
    def _orders(self):
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------
    def get_order(self, auth: AuthContext, order_id: str) -> Order:
        """Load an order the caller owns (or any order, for an admin)."""
        try:
            order = self._orders.get(str(order_id))
        except ObjectNotFoundError:
            raise NotFoundError("Order not found", order_id=str(order_id)) from None

        if not auth.can_access(order.user_id):
            logger.warning("Order access denied", user_id=auth.user_id, order_id=str(order_id))
            raise ForbiddenError("You do not have access to this order")
        return order

    # -------------------------------------------------------------------
    # Create order
    # -------------------------------------------------------------------
    def create_order(self, auth: AuthContext, shipping_address: dict, notes: str | None = None) -> CheckoutResult:
        add_context(user_id=auth.user_id)

        # Input validation before any mutation
        address = ShippingAddress(**(shipping_address or {}))

        cart = cart_for(auth.user_id, create=False)
        if cart is None or cart.is_empty:
            raise EmptyCartError("Your cart is empty")

        lines = [
            {
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.price_snapshot,
            }
            for item in cart.items
        ]

        reservation = self.guard.validate_and_reserve(
            StockLine(product_id=line["product_id"], quantity=line["quantity"]) for line in lines
        )

        try:
            order_id = current_domain.process(
                PlaceOrder(
                    user_id=auth.user_id,
                    user_email=auth.email,
                    items=json.dumps(lines),
                    shipping_address=json.dumps(address.to_dict()),
                    notes=notes,
                ),
                asynchronous=False,
            )
        except Exception:
            try:
                self.guard.restore(reservation.lines)
            except StockRestoreError as restore_exc:
                logger.error("Order was not placed and stock is unrestored", failed=restore_exc.failed)
            raise

        add_context(order_id=order_id)
        order = self._orders.get(order_id)

        try:
            opened = self.bridge.open(
                amount=order.total_amount,
                order_reference=order.order_number,
                session_id=session_id_for(auth.user_id),
            )
            current_domain.process(
                AttachGatewayToken(order_id=order_id, gateway_token=opened.token),
                asynchronous=False,
            )
        except Exception as exc:
            logger.error("Payment could not be initiated, compensating", order_id=order_id, error=str(exc))
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Payment could not be initiated", cancelled_by="system"),
                asynchronous=False,
            )
            try:
                self._release_stock(order)
            except StockRestoreError as restore_exc:
                # The gateway failure is what the caller sees; cancelling again finishes the restore
                logger.error("Compensation left stock unrestored", order_id=order_id, failed=restore_exc.failed)
            raise

        current_domain.process(ClearCart(user_id=auth.user_id), asynchronous=False)

        logger.info(
            "Order created",
            order_id=order_id,
            order_number=order.order_number,
            total_amount=order.total_amount,
        )
        return CheckoutResult(
            order=self._orders.get(order_id),
            token=opened.token,
            redirect_url=opened.redirect_url,
        )

    # -------------------------------------------------------------------
    # Confirm payment
    # -------------------------------------------------------------------
    def confirm_payment(self, token: str | None, aborted_token: str | None = None) -> Order:
        """Handle the gateway return callback. Requires no authentication."""
        if not token:
            if aborted_token:
                self._record_abort(self._orders.find_by_gateway_token(aborted_token))
                raise GatewayAbortedError()
            raise ValidationError({"token": ["Payment token is required"]})

        order = self._orders.find_by_gateway_token(token)
        if order is None:
            raise NotFoundError("Order not found for this payment")
        add_context(order_id=str(order.id))

        if not order.is_payment_settled and order.status == OrderStatus.CANCELLED.value:
            raise InvalidStateTransitionError("This order was cancelled and can no longer be paid")

        try:
            order = self.bridge.commit(order)
        except GatewayAbortedError:
            self._record_abort(order)
            raise

        if order.payment_status == PaymentStatus.FAILED.value:
            self._release_stock(order)
            order = self._orders.get(str(order.id))

        return order

    def _record_abort(self, order: Order | None) -> None:
        if order is None or order.is_payment_settled:
            return
        logger.info("Payment aborted by customer", order_id=str(order.id))
        current_domain.process(
            RecordPaymentOutcome(order_id=str(order.id), authorized=False, gateway_status="ABORTED"),
            asynchronous=False,
        )
        self._release_stock(order)

    # -------------------------------------------------------------------
    # Cancel / refund
    # -------------------------------------------------------------------
    def cancel_order(self, auth: AuthContext, order_id: str, reason: str | None = None) -> CancellationResult:
        order = self.get_order(auth, order_id)
        add_context(order_id=str(order.id))

        if order.status == OrderStatus.CANCELLED.value:
            if order.stock_restored:
                raise InvalidStateTransitionError("Order is already cancelled")
            # A previous cancellation could not give every unit back
            self._release_stock(order)
            return CancellationResult(order=self._orders.get(str(order.id)), refund_processed=False)
        if not order.is_cancellable:
            raise InvalidStateTransitionError(f"An order that is {order.status} cannot be cancelled")

        refund_processed = False
        if order.payment_status == PaymentStatus.PAID.value:
            self.bridge.refund(order)
            refund_processed = True

        cancelled_by = "customer" if str(order.user_id) == str(auth.user_id) else "admin"
        current_domain.process(
            CancelOrder(order_id=str(order.id), reason=reason, cancelled_by=cancelled_by),
            asynchronous=False,
        )
        self._release_stock(order)

        logger.info("Order cancelled", order_id=str(order.id), refund_processed=refund_processed)
        return CancellationResult(order=self._orders.get(str(order.id)), refund_processed=refund_processed)

    def refund_order(self, auth: AuthContext, order_id: str, amount: float | None = None) -> RefundOutcome:
        """Refund a paid order (admin). A still-cancellable order is also cancelled."""
        auth.ensure_admin()
        order = self.get_order(auth, order_id)

        refund = self.bridge.refund(order, amount)

        cancelled = False
        if order.is_cancellable:
            current_domain.process(
                CancelOrder(order_id=str(order.id), reason="Refunded by administrator", cancelled_by="admin"),
                asynchronous=False,
            )
            self._release_stock(order)
            cancelled = True

        return RefundOutcome(order=self._orders.get(str(order.id)), refund=refund, cancelled=cancelled)

    def _release_stock(self, order: Order) -> None:
        """Give the order's stock back, at most once per order line.

        When some lines cannot be restored the claim is released with the
        lines that did make it back, so a retry only restores the rest.
        """
        lines = current_domain.process(ClaimStockRelease(order_id=str(order.id)), asynchronous=False)
        if not lines:
            return
        try:
            self.guard.restore(lines)
        except StockRestoreError as exc:
            current_domain.process(
                ReleaseStockClaim(order_id=str(order.id), restored_product_ids=json.dumps(exc.restored)),
                asynchronous=False,
            )
            raise

    # -------------------------------------------------------------------
    # Payment status
    # -------------------------------------------------------------------
    def live_gateway_status(self, order: Order) -> dict | None:
        """Ask the gateway about the order's transaction; None when unknown or unreachable."""
        if not order.gateway_token:
            return None
        try:
            result = self.bridge.query_status(order.gateway_token)
        except StorefrontError as exc:
            logger.warning("Gateway status unavailable", order_id=str(order.id), error=exc.message)
            return None
        return {"status": result.status, "amount": result.amount, "response_code": result.response_code}

    def payment_status(self, auth: AuthContext, order_id: str) -> dict:
        order = self.get_order(auth, order_id)
        gateway = self.live_gateway_status(order)
        return {
            "order": order,
            "gateway_status": gateway["status"] if gateway else None,
            "gateway_amount": gateway["amount"] if gateway else None,
        }
