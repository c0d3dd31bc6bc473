"""Payment gateway factory.

The gateway is built once at startup from settings and injected where it
is needed (``app.state.gateway`` for the HTTP surface):
- FakeGateway for development and testing (PAYMENT_GATEWAY=fake)
- WebpayGateway against Transbank's integration or production host
  (PAYMENT_GATEWAY=webpay, TRANSBANK_ENVIRONMENT=integration|production)
"""

from storefront.config import Settings
from storefront.payment.gateway.fake_adapter import FakeGateway
from storefront.payment.gateway.port import PaymentGateway
from storefront.payment.gateway.webpay_adapter import WebpayGateway


def build_gateway(settings: Settings) -> PaymentGateway:
    """Return the gateway selected by configuration."""
    if settings.PAYMENT_GATEWAY == "fake":
        return FakeGateway()

    if settings.TRANSBANK_ENVIRONMENT == "integration":
        return WebpayGateway.for_integration(timeout=settings.GATEWAY_TIMEOUT_SECONDS)

    # Raises ConfigurationError when the production credentials are missing
    return WebpayGateway(
        commerce_code=settings.TRANSBANK_COMMERCE_CODE,
        api_key=settings.TRANSBANK_API_KEY,
        environment="production",
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )


__all__ = ["FakeGateway", "PaymentGateway", "WebpayGateway", "build_gateway"]
