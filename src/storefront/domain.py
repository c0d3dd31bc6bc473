"""Storefront bounded context — Cart, Order, Inventory and Payment.

A single synchronous store: customers fill a cart, checkout reserves stock
and persists an order, and the order is paid through a browser-redirect
payment gateway (Webpay Plus style create → redirect → commit).
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
