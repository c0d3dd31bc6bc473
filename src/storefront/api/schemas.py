"""Pydantic request/response schemas for the Storefront API.

These are external contracts, separate from the internal Protean commands.
Fields are exposed in camelCase; snake_case names are accepted on input.
Every response is wrapped in ``Envelope``: ``{success, message?, data?}``.
"""

from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T | None = None


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(CamelModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(CamelModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(CamelModel):
    product_id: str
    quantity: int = Field(ge=1)


class CartItemView(CamelModel):
    product_id: str
    product_name: str | None = None
    quantity: int
    price: float
    subtotal: float

    @classmethod
    def from_item(cls, item) -> "CartItemView":
        return cls(
            product_id=str(item.product_id),
            product_name=item.product_name,
            quantity=item.quantity,
            price=item.price_snapshot,
            subtotal=item.subtotal,
        )


class CartView(CamelModel):
    id: str
    user_id: str
    items: list[CartItemView]
    total_amount: float
    total_items: int
    item_count: int

    @classmethod
    def from_cart(cls, cart) -> "CartView":
        return cls(
            id=str(cart.id),
            user_id=str(cart.user_id),
            items=[CartItemView.from_item(item) for item in cart.items],
            total_amount=cart.total_amount,
            total_items=cart.total_items,
            item_count=len(cart.items),
        )


class CartSummaryView(CamelModel):
    total_items: int
    total_amount: float
    item_count: int
    items: list[CartItemView]

    @classmethod
    def from_cart(cls, cart) -> "CartSummaryView":
        return cls(
            total_items=cart.total_items,
            total_amount=cart.total_amount,
            item_count=len(cart.items),
            items=[CartItemView.from_item(item) for item in cart.items],
        )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
OrderStatusLiteral = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
PaymentStatusLiteral = Literal["pending", "paid", "failed", "refunded"]


class CreateOrderRequest(CamelModel):
    shipping_address: ShippingAddressSchema
    notes: str | None = None


class CancelOrderRequest(CamelModel):
    reason: str | None = None


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatusLiteral
    notes: str | None = None


class OrderItemView(CamelModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float


class OrderView(CamelModel):
    id: str
    order_number: str
    user_id: str
    status: str
    payment_status: str
    payment_method: str | None = None
    total_amount: float
    items: list[OrderItemView]
    shipping_address: ShippingAddressSchema | None = None
    notes: str | None = None
    gateway_status: str | None = None
    authorization_code: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    live_gateway_status: str | None = None

    @classmethod
    def from_order(cls, order, live_gateway_status: str | None = None) -> "OrderView":
        address = order.shipping_address
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            total_amount=order.total_amount,
            items=[
                OrderItemView(
                    product_id=str(item.product_id),
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            shipping_address=ShippingAddressSchema(**address.to_dict()) if address else None,
            notes=order.notes,
            gateway_status=order.gateway_status,
            authorization_code=order.authorization_code,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
            live_gateway_status=live_gateway_status,
        )


class PaginationView(CamelModel):
    current_page: int
    total_pages: int
    total_orders: int
    has_next_page: bool
    has_prev_page: bool


class OrderListView(CamelModel):
    orders: list[OrderView]
    pagination: PaginationView

    @classmethod
    def from_page(cls, page) -> "OrderListView":
        return cls(
            orders=[OrderView.from_order(order) for order in page.orders],
            pagination=PaginationView(
                current_page=page.page,
                total_pages=page.total_pages,
                total_orders=page.total,
                has_next_page=page.has_next,
                has_prev_page=page.has_prev,
            ),
        )


class DateRangeView(CamelModel):
    start: str
    end: str


class OrderStatsView(CamelModel):
    period: str
    total_orders: int
    total_revenue: float
    average_order_value: float
    conversion_rate: float
    orders_by_status: dict[str, int]
    orders_by_payment_status: dict[str, int]
    date_range: DateRangeView


class CancellationView(CamelModel):
    order_id: str
    status: str
    payment_status: str
    refund_processed: bool


class StatusUpdateView(CamelModel):
    order_id: str
    status: str
    notes: str | None = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(CreateOrderRequest):
    pass


class ConfirmPaymentRequest(CamelModel):
    token: str | None = None
    token_ws: str | None = Field(default=None, alias="token_ws")
    tbk_token: str | None = Field(default=None, alias="TBK_TOKEN")

    @property
    def resolved_token(self) -> str | None:
        return self.token or self.token_ws


class RefundRequest(CamelModel):
    amount: float | None = Field(default=None, gt=0)


class CheckoutView(CamelModel):
    order_id: str
    order_number: str
    amount: float
    redirect_url: str
    token: str


class PaymentConfirmationView(CamelModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    gateway_status: str | None = None
    amount: float
    authorization_code: str | None = None


class PaymentStatusView(CamelModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    gateway_status: str | None = None
    amount: float | None = None


class RefundView(CamelModel):
    order_id: str
    status: str
    payment_status: str
    refunded_amount: float | None = None
    refund_type: str | None = None
    cancelled: bool
