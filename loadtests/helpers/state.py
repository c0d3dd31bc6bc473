"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state; nothing is shared across users.
"""

from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks one shopper from cart to paid order."""

    user_id: str | None = None
    headers: dict = field(default_factory=dict)
    cart_lines: int = 0
    order_id: str | None = None
    token: str | None = None
    payment_status: str = "pending"
