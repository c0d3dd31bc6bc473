"""Order statistics for the admin dashboard."""

from collections import Counter
from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from storefront.order.order import Order, PaymentStatus

PERIODS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
}
DEFAULT_PERIOD = "30d"


def order_statistics(period: str = DEFAULT_PERIOD, now: datetime | None = None) -> dict:
    """Aggregate orders placed within ``period``; unknown periods fall back to 30 days."""
    now = now or datetime.now(UTC)
    window = PERIODS.get(period, PERIODS[DEFAULT_PERIOD])
    start = now - window

    orders = current_domain.repository_for(Order).placed_since(start)

    total_orders = len(orders)
    paid = [o for o in orders if o.payment_status == PaymentStatus.PAID.value]
    total_revenue = round(sum(o.total_amount for o in paid), 2)

    return {
        "period": period if period in PERIODS else DEFAULT_PERIOD,
        "total_orders": total_orders,
        "total_revenue": total_revenue,
        "average_order_value": round(total_revenue / total_orders, 2) if total_orders else 0.0,
        "conversion_rate": round(len(paid) / total_orders * 100, 2) if total_orders else 0.0,
        "orders_by_status": dict(Counter(o.status for o in orders)),
        "orders_by_payment_status": dict(Counter(o.payment_status for o in orders)),
        "date_range": {"start": start.isoformat(), "end": now.isoformat()},
    }
