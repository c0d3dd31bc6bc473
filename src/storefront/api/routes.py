"""FastAPI routes for the Storefront — cart, orders and payments.

Handlers are plain functions: the repositories and the payment gateway
block, so FastAPI runs them in its threadpool instead of on the event loop.
"""

from fastapi import APIRouter, Depends, Query, Request
from protean.utils.globals import current_domain

from storefront.api.auth import require_admin, require_auth
from storefront.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CancellationView,
    CartSummaryView,
    CartView,
    CheckoutView,
    ConfirmPaymentRequest,
    CreateOrderRequest,
    Envelope,
    InitiatePaymentRequest,
    OrderListView,
    OrderStatsView,
    OrderStatusLiteral,
    OrderView,
    PaymentConfirmationView,
    PaymentStatusLiteral,
    PaymentStatusView,
    RefundRequest,
    RefundView,
    StatusUpdateView,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)
from storefront.cart.items import AddToCart, ClearCart, ReconcileCart, RemoveFromCart, SetCartItemQuantity, cart_for
from storefront.checkout.orchestrator import CheckoutOrchestrator
from storefront.config import get_settings
from storefront.errors import ConfigurationError
from storefront.identity import AuthContext
from storefront.order.fulfillment import AdvanceOrderStatus
from storefront.order.order import Order
from storefront.order.reporting import DEFAULT_PERIOD, order_statistics
from storefront.utils.retry import process_with_retry


def get_orchestrator(request: Request) -> CheckoutOrchestrator:
    """Build the orchestrator around the gateway installed on the app at startup."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise ConfigurationError("No payment gateway is configured")
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return CheckoutOrchestrator(gateway, settings=settings)


def _cart_view(user_id) -> CartView:
    return CartView.from_cart(cart_for(user_id))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=Envelope[CartView])
def get_cart(auth: AuthContext = Depends(require_auth)) -> Envelope[CartView]:
    process_with_retry(ReconcileCart(user_id=auth.user_id))
    return Envelope(data=_cart_view(auth.user_id))


@cart_router.get("/summary", response_model=Envelope[CartSummaryView])
def get_cart_summary(auth: AuthContext = Depends(require_auth)) -> Envelope[CartSummaryView]:
    process_with_retry(ReconcileCart(user_id=auth.user_id))
    return Envelope(data=CartSummaryView.from_cart(cart_for(auth.user_id)))


@cart_router.post("/add", response_model=Envelope[CartView])
def add_to_cart(body: AddToCartRequest, auth: AuthContext = Depends(require_auth)) -> Envelope[CartView]:
    process_with_retry(AddToCart(user_id=auth.user_id, product_id=body.product_id, quantity=body.quantity))
    return Envelope(message="Product added to cart", data=_cart_view(auth.user_id))


@cart_router.put("/update", response_model=Envelope[CartView])
def update_cart_item(
    body: UpdateCartItemRequest, auth: AuthContext = Depends(require_auth)
) -> Envelope[CartView]:
    process_with_retry(
        SetCartItemQuantity(user_id=auth.user_id, product_id=body.product_id, quantity=body.quantity)
    )
    return Envelope(message="Cart updated", data=_cart_view(auth.user_id))


@cart_router.delete("/remove/{product_id}", response_model=Envelope[CartView])
def remove_from_cart(product_id: str, auth: AuthContext = Depends(require_auth)) -> Envelope[CartView]:
    process_with_retry(RemoveFromCart(user_id=auth.user_id, product_id=product_id))
    return Envelope(message="Product removed from cart", data=_cart_view(auth.user_id))


@cart_router.delete("/clear", response_model=Envelope[CartView])
def clear_cart(auth: AuthContext = Depends(require_auth)) -> Envelope[CartView]:
    process_with_retry(ClearCart(user_id=auth.user_id))
    return Envelope(message="Cart cleared", data=_cart_view(auth.user_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _checkout(body: CreateOrderRequest, auth: AuthContext, orchestrator: CheckoutOrchestrator) -> CheckoutView:
    result = orchestrator.create_order(auth, body.shipping_address.model_dump(), notes=body.notes)
    return CheckoutView(
        order_id=str(result.order.id),
        order_number=result.order.order_number,
        amount=result.order.total_amount,
        redirect_url=result.redirect_url,
        token=result.token,
    )


@order_router.post("", status_code=201, response_model=Envelope[CheckoutView])
def create_order(
    body: CreateOrderRequest,
    auth: AuthContext = Depends(require_auth),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[CheckoutView]:
    return Envelope(message="Order created", data=_checkout(body, auth, orchestrator))


@order_router.get("/mine", response_model=Envelope[OrderListView])
def list_my_orders(
    status: OrderStatusLiteral | None = None,
    payment_status: PaymentStatusLiteral | None = Query(default=None, alias="paymentStatus"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
) -> Envelope[OrderListView]:
    result = current_domain.repository_for(Order).page(
        page=page, limit=limit, user_id=auth.user_id, status=status, payment_status=payment_status
    )
    return Envelope(data=OrderListView.from_page(result))


@order_router.get("/admin/all", response_model=Envelope[OrderListView])
def list_all_orders(
    status: OrderStatusLiteral | None = None,
    payment_status: PaymentStatusLiteral | None = Query(default=None, alias="paymentStatus"),
    user_id: str | None = Query(default=None, alias="userId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    auth: AuthContext = Depends(require_admin),
) -> Envelope[OrderListView]:
    result = current_domain.repository_for(Order).page(
        page=page, limit=limit, user_id=user_id, status=status, payment_status=payment_status
    )
    return Envelope(data=OrderListView.from_page(result))


@order_router.get("/admin/stats", response_model=Envelope[OrderStatsView])
def get_order_stats(
    period: str = DEFAULT_PERIOD, auth: AuthContext = Depends(require_admin)
) -> Envelope[OrderStatsView]:
    return Envelope(data=OrderStatsView(**order_statistics(period)))


@order_router.patch("/admin/{order_id}/status", response_model=Envelope[StatusUpdateView])
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    auth: AuthContext = Depends(require_admin),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[StatusUpdateView]:
    if body.status == "cancelled":
        # Cancellation refunds and restores stock, so it never goes through a plain status change
        result = orchestrator.cancel_order(auth, order_id, reason=body.notes)
        new_status = result.order.status
    else:
        orchestrator.get_order(auth, order_id)
        new_status = current_domain.process(
            AdvanceOrderStatus(order_id=order_id, status=body.status, notes=body.notes),
            asynchronous=False,
        )
    return Envelope(
        message="Order status updated",
        data=StatusUpdateView(order_id=order_id, status=new_status, notes=body.notes),
    )


@order_router.get("/{order_id}", response_model=Envelope[OrderView])
def get_order(
    order_id: str,
    auth: AuthContext = Depends(require_auth),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[OrderView]:
    order = orchestrator.get_order(auth, order_id)
    live = orchestrator.live_gateway_status(order)
    return Envelope(data=OrderView.from_order(order, live_gateway_status=live["status"] if live else None))


@order_router.patch("/{order_id}/cancel", response_model=Envelope[CancellationView])
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    auth: AuthContext = Depends(require_auth),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[CancellationView]:
    result = orchestrator.cancel_order(auth, order_id, reason=body.reason if body else None)
    return Envelope(
        message="Order cancelled",
        data=CancellationView(
            order_id=str(result.order.id),
            status=result.order.status,
            payment_status=result.order.payment_status,
            refund_processed=result.refund_processed,
        ),
    )


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/initiate", response_model=Envelope[CheckoutView])
def initiate_payment(
    body: InitiatePaymentRequest,
    auth: AuthContext = Depends(require_auth),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[CheckoutView]:
    return Envelope(message="Payment initiated", data=_checkout(body, auth, orchestrator))


@payment_router.post("/confirm", response_model=Envelope[PaymentConfirmationView])
def confirm_payment(
    body: ConfirmPaymentRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[PaymentConfirmationView]:
    order = orchestrator.confirm_payment(body.resolved_token, aborted_token=body.tbk_token)
    message = "Payment approved" if order.payment_status == "paid" else "Payment was not approved"
    return Envelope(
        message=message,
        data=PaymentConfirmationView(
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            payment_status=order.payment_status,
            gateway_status=order.gateway_status,
            amount=order.total_amount,
            authorization_code=order.authorization_code,
        ),
    )


@payment_router.get("/{order_id}/status", response_model=Envelope[PaymentStatusView])
def get_payment_status(
    order_id: str,
    auth: AuthContext = Depends(require_auth),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[PaymentStatusView]:
    result = orchestrator.payment_status(auth, order_id)
    order = result["order"]
    return Envelope(
        data=PaymentStatusView(
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            payment_status=order.payment_status,
            gateway_status=result["gateway_status"],
            amount=result["gateway_amount"],
        )
    )


@payment_router.post("/{order_id}/refund", response_model=Envelope[RefundView])
def refund_payment(
    order_id: str,
    body: RefundRequest | None = None,
    auth: AuthContext = Depends(require_admin),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Envelope[RefundView]:
    outcome = orchestrator.refund_order(auth, order_id, amount=body.amount if body else None)
    return Envelope(
        message="Refund processed",
        data=RefundView(
            order_id=str(outcome.order.id),
            status=outcome.order.status,
            payment_status=outcome.order.payment_status,
            refunded_amount=outcome.order.refunded_amount,
            refund_type=outcome.refund.type,
            cancelled=outcome.cancelled,
        ),
    )
