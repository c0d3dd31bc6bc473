"""Error taxonomy for the storefront.

Every business error carries the HTTP status it maps to, a user-facing
message and whether the caller may retry. Field-level input problems are
reported with ``protean.exceptions.ValidationError`` instead.
"""


class StorefrontError(Exception):
    status_code = 500
    retryable = False
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, **context) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class NotFoundError(StorefrontError):
    status_code = 404
    default_message = "Resource not found"


class UnavailableError(StorefrontError):
    status_code = 400
    default_message = "Product is not available"


class UnauthorizedError(StorefrontError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(StorefrontError):
    status_code = 403
    default_message = "You do not have access to this resource"


class InsufficientStockError(StorefrontError):
    status_code = 400
    default_message = "Insufficient stock"

    def __init__(self, product_id: str, available: int, requested: int, product_name: str | None = None) -> None:
        self.product_id = product_id
        self.available = available
        self.requested = requested
        label = product_name or "product"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}, requested: {requested}",
            product_id=product_id,
            available=available,
            requested=requested,
        )


class EmptyCartError(StorefrontError):
    status_code = 400
    default_message = "Cart is empty"


class InvalidStateTransitionError(StorefrontError):
    status_code = 400
    default_message = "Invalid state transition"


class GatewayAbortedError(StorefrontError):
    status_code = 400
    default_message = "The payment was aborted by the user"


class GatewayInvalidStateError(StorefrontError):
    status_code = 400
    default_message = "The payment transaction cannot be processed in its current state"


class GatewayUnavailableError(StorefrontError):
    status_code = 502
    retryable = True
    default_message = "The payment service is temporarily unavailable"


class ConfigurationError(StorefrontError):
    status_code = 500
    default_message = "The payment service is not configured"


class ConcurrencyConflictError(StorefrontError):
    status_code = 409
    retryable = True
    default_message = "The resource was modified concurrently, please retry"


class StockRestoreError(ConcurrencyConflictError):
    default_message = "Stock could not be fully restored, please retry"

    def __init__(self, restored: list[str], failed: list[str]) -> None:
        self.restored = restored
        self.failed = failed
        super().__init__(restored=restored, failed=failed)
