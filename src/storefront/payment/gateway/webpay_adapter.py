"""Transbank Webpay Plus REST adapter.

Talks to the Webpay Plus transactions API with ``requests``. Every call is
bounded by a timeout. Only the read-only status query is retried on a
transient failure; create, commit and refund change remote state and are
never replayed blindly.

Environments:
- integration: Transbank's public test host and published test credentials
- production: requires the merchant's own commerce code and API key
"""

import requests
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.errors import (
    ConfigurationError,
    GatewayAbortedError,
    GatewayInvalidStateError,
    GatewayUnavailableError,
)
from storefront.payment.gateway.port import OpenedTransaction, PaymentGateway, RefundResult, TransactionResult

logger = structlog.get_logger(__name__)

HOSTS = {
    "integration": "https://webpay3gint.transbank.cl",
    "production": "https://webpay3g.transbank.cl",
}
TRANSACTIONS_PATH = "/rswebpaytransaction/api/webpay/v1.2/transactions"

# Published by Transbank for the integration environment
INTEGRATION_COMMERCE_CODE = "597055555532"
INTEGRATION_API_KEY = "579B532A7440BB0C9079DED94D31EA1615BACEB56610332264630D42D0A36B1C"


def status_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(GatewayUnavailableError),
    )


def _classify_error(status_code: int, message: str) -> Exception:
    lowered = message.lower()
    if "aborted" in lowered:
        return GatewayAbortedError()
    if status_code in (401, 403):
        return ConfigurationError("The payment gateway rejected the merchant credentials")
    if "invalid status" in lowered or status_code in (404, 409, 422):
        return GatewayInvalidStateError()
    return GatewayInvalidStateError(f"The payment gateway rejected the request: {message}")


class WebpayGateway(PaymentGateway):
    """Webpay Plus gateway over the REST API."""

    def __init__(
        self,
        commerce_code: str,
        api_key: str,
        environment: str = "integration",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if environment not in HOSTS:
            raise ConfigurationError(f"Unknown Transbank environment: {environment}")
        if not commerce_code or not api_key:
            raise ConfigurationError(
                "TRANSBANK_COMMERCE_CODE and TRANSBANK_API_KEY are required for the production environment"
            )
        self.commerce_code = commerce_code
        self.api_key = api_key
        self.environment = environment
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def for_integration(cls, timeout: float = 10.0, session: requests.Session | None = None) -> "WebpayGateway":
        return cls(
            commerce_code=INTEGRATION_COMMERCE_CODE,
            api_key=INTEGRATION_API_KEY,
            environment="integration",
            timeout=timeout,
            session=session,
        )

    @property
    def base_url(self) -> str:
        return f"{HOSTS[self.environment]}{TRANSACTIONS_PATH}"

    def _headers(self) -> dict:
        return {
            "Tbk-Api-Key-Id": self.commerce_code,
            "Tbk-Api-Key-Secret": self.api_key,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str = "", payload: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Webpay request failed", method=method, path=path, error=str(exc))
            raise GatewayUnavailableError() from exc

        if resp.status_code >= 500:
            logger.warning("Webpay server error", method=method, path=path, status_code=resp.status_code)
            raise GatewayUnavailableError()

        try:
            body = resp.json() if resp.content else {}
        except ValueError:
            body = {"error_message": resp.text}

        if resp.status_code >= 400:
            message = body.get("error_message", "") if isinstance(body, dict) else str(body)
            logger.info("Webpay rejected request", method=method, path=path, status_code=resp.status_code)
            raise _classify_error(resp.status_code, message)
        return body

    @staticmethod
    def _transaction_result(body: dict) -> TransactionResult:
        return TransactionResult(
            status=body.get("status", ""),
            response_code=body.get("response_code"),
            amount=body.get("amount"),
            buy_order=body.get("buy_order"),
            authorization_code=body.get("authorization_code"),
            raw=body,
        )

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def create(self, buy_order: str, session_id: str, amount: float, return_url: str) -> OpenedTransaction:
        body = self._request(
            "POST",
            payload={
                "buy_order": buy_order,
                "session_id": session_id,
                "amount": amount,
                "return_url": return_url,
            },
        )
        if not body.get("token") or not body.get("url"):
            raise GatewayUnavailableError("The payment service returned an incomplete response")
        return OpenedTransaction(token=body["token"], url=body["url"])

    def commit(self, token: str) -> TransactionResult:
        return self._transaction_result(self._request("PUT", f"/{token}"))

    @status_retry()
    def status(self, token: str) -> TransactionResult:
        return self._transaction_result(self._request("GET", f"/{token}"))

    def refund(self, token: str, amount: float) -> RefundResult:
        body = self._request("POST", f"/{token}/refunds", payload={"amount": amount})
        return RefundResult(
            type=body.get("type", ""),
            response_code=body.get("response_code"),
            authorization_code=body.get("authorization_code"),
            nullified_amount=body.get("nullified_amount"),
            balance=body.get("balance"),
            raw=body,
        )
