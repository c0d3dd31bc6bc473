"""Payment gateway port (abstract interface).

Models a browser-redirect gateway with a three-step handshake: ``create``
opens a transaction and returns a token plus the URL the customer is sent
to, the gateway redirects back to our return URL, and ``commit`` settles
the transaction. ``status`` and ``refund`` work on an existing token.

Adapters translate transport and remote failures into
``GatewayAbortedError``, ``GatewayInvalidStateError`` or
``GatewayUnavailableError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

AUTHORIZED = "AUTHORIZED"


@dataclass(frozen=True)
class OpenedTransaction:
    """A gateway transaction waiting for the customer."""

    token: str
    url: str

    @property
    def redirect_url(self) -> str:
        return f"{self.url}?token_ws={self.token}"


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a commit or status query."""

    status: str
    response_code: int | None = None
    amount: float | None = None
    buy_order: str | None = None
    authorization_code: str | None = None
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def authorized(self) -> bool:
        return self.status == AUTHORIZED and self.response_code == 0


@dataclass(frozen=True)
class RefundResult:
    """Outcome of a refund (reversal or nullification)."""

    type: str
    response_code: int | None = None
    authorization_code: str | None = None
    nullified_amount: float | None = None
    balance: float | None = None
    raw: dict = field(default_factory=dict, compare=False)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create(self, buy_order: str, session_id: str, amount: float, return_url: str) -> OpenedTransaction:
        """Open a transaction the customer will be redirected to."""
        ...

    @abstractmethod
    def commit(self, token: str) -> TransactionResult:
        """Settle the transaction after the customer returns."""
        ...

    @abstractmethod
    def status(self, token: str) -> TransactionResult:
        """Read the current state of a transaction without changing it."""
        ...

    @abstractmethod
    def refund(self, token: str, amount: float) -> RefundResult:
        """Refund all or part of an authorised transaction."""
        ...
