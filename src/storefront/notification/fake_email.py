"""In-memory mailer that keeps every delivered message for inspection."""

from uuid import uuid4

from storefront.notification.email_port import DeliveryReceipt, EmailMessage, EmailPort


class RecordingMailer(EmailPort):
    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []
        self._refusal: str | None = None

    def refuse_with(self, reason: str = "Mailbox unavailable") -> None:
        """Refuse every delivery until ``reset()``."""
        self._refusal = reason

    def deliver(self, message: EmailMessage) -> DeliveryReceipt:
        if self._refusal:
            return DeliveryReceipt(delivered=False, error=self._refusal)
        self.outbox.append(message)
        return DeliveryReceipt(delivered=True, message_id=f"msg-{uuid4().hex[:12]}")

    def addressed_to(self, address: str) -> list[EmailMessage]:
        return [message for message in self.outbox if message.to == address]

    def reset(self) -> None:
        self.outbox.clear()
        self._refusal = None
