"""Outgoing email port used by order notifications."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    order_number: str | None = None


@dataclass(frozen=True)
class DeliveryReceipt:
    delivered: bool
    message_id: str | None = None
    error: str | None = None


class EmailPort(ABC):
    @abstractmethod
    def deliver(self, message: EmailMessage) -> DeliveryReceipt:
        """Hand the message to the mail provider. Never raises for a refused delivery."""
        ...
