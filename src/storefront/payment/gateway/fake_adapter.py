"""Configurable fake payment gateway for development and testing.

Simulates the create → redirect → commit handshake in memory, including the
remote side's bookkeeping: a token can be committed once, refunds are only
accepted for authorised transactions and never above the remaining amount.

Outcomes can be configured at runtime:
- ``configure(should_succeed=False)`` makes commits come back rejected
- ``fail_on("create", GatewayUnavailableError())`` makes every call to a
  method raise the given error until ``reset()``
"""

from uuid import uuid4

from storefront.errors import GatewayInvalidStateError
from storefront.payment.gateway.port import (
    AUTHORIZED,
    OpenedTransaction,
    PaymentGateway,
    RefundResult,
    TransactionResult,
)

FAKE_GATEWAY_URL = "https://fake-gateway.local/webpay/init"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.calls: list[dict] = []
        self.transactions: dict[str, dict] = {}
        self._failures: dict[str, Exception] = {}

    def configure(self, should_succeed: bool) -> None:
        """Configure whether commits are authorised or rejected."""
        self.should_succeed = should_succeed

    def fail_on(self, method: str, error: Exception) -> None:
        self._failures[method] = error

    def reset(self) -> None:
        self.should_succeed = True
        self.calls.clear()
        self.transactions.clear()
        self._failures.clear()

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if method in self._failures:
            raise self._failures[method]

    def _transaction(self, token: str) -> dict:
        if token not in self.transactions:
            raise GatewayInvalidStateError("Transaction not found for token")
        return self.transactions[token]

    def _result(self, txn: dict) -> TransactionResult:
        return TransactionResult(
            status=txn["status"],
            response_code=txn["response_code"],
            amount=txn["amount"],
            buy_order=txn["buy_order"],
            authorization_code=txn["authorization_code"],
            raw=dict(txn),
        )

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def create(self, buy_order: str, session_id: str, amount: float, return_url: str) -> OpenedTransaction:
        self._record("create", buy_order=buy_order, session_id=session_id, amount=amount, return_url=return_url)

        token = f"fake_tok_{uuid4().hex}"
        self.transactions[token] = {
            "buy_order": buy_order,
            "session_id": session_id,
            "amount": amount,
            "status": "INITIALIZED",
            "response_code": None,
            "authorization_code": None,
            "refunded": 0.0,
        }
        return OpenedTransaction(token=token, url=FAKE_GATEWAY_URL)

    def commit(self, token: str) -> TransactionResult:
        self._record("commit", token=token)

        txn = self._transaction(token)
        if txn["status"] != "INITIALIZED":
            raise GatewayInvalidStateError("Invalid status: transaction already committed")

        if self.should_succeed:
            txn.update(status=AUTHORIZED, response_code=0, authorization_code=f"{uuid4().int % 1000000:06d}")
        else:
            txn.update(status="FAILED", response_code=-1)
        return self._result(txn)

    def status(self, token: str) -> TransactionResult:
        self._record("status", token=token)
        return self._result(self._transaction(token))

    def refund(self, token: str, amount: float) -> RefundResult:
        self._record("refund", token=token, amount=amount)

        txn = self._transaction(token)
        if txn["status"] not in (AUTHORIZED, "PARTIALLY_NULLIFIED"):
            raise GatewayInvalidStateError("Invalid status: transaction cannot be refunded")

        balance = round(txn["amount"] - txn["refunded"] - amount, 2)
        if amount <= 0 or balance < 0:
            raise GatewayInvalidStateError("Refund amount exceeds the authorised balance")

        txn["refunded"] = round(txn["refunded"] + amount, 2)
        txn["status"] = "NULLIFIED" if balance == 0 else "PARTIALLY_NULLIFIED"
        return RefundResult(
            type="NULLIFIED",
            response_code=0,
            authorization_code=txn["authorization_code"],
            nullified_amount=amount,
            balance=balance,
            raw=dict(txn),
        )
