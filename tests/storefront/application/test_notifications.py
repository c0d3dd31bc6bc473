import pytest
from storefront.identity import AuthContext
from storefront.notification.channel import set_email_channel
from storefront.notification.email_port import EmailPort


@pytest.fixture
def checkout(orchestrator, customer, address, make_product, fill_cart):
    product = make_product(price=10.0, stock=5)
    fill_cart(customer.user_id, (product, 2))
    return orchestrator.create_order(customer, address)


def _subjects(email_channel, address):
    return [message.subject for message in email_channel.addressed_to(address)]


def test_order_placed_sends_confirmation(checkout, email_channel):
    [subject] = _subjects(email_channel, "ana@example.com")
    assert subject == f"Order {checkout.order.order_number} received"


def test_payment_receipt_sent_once(orchestrator, checkout, email_channel):
    orchestrator.confirm_payment(checkout.token)
    orchestrator.confirm_payment(checkout.token)

    receipts = [s for s in _subjects(email_channel, "ana@example.com") if s.startswith("Payment confirmed")]
    assert len(receipts) == 1


def test_rejected_payment_notifies_customer(orchestrator, gateway, checkout, email_channel):
    gateway.configure(should_succeed=False)
    orchestrator.confirm_payment(checkout.token)

    assert any(s.startswith("Payment not completed") for s in _subjects(email_channel, "ana@example.com"))


def test_cancellation_of_paid_order_sends_refund_and_cancellation(
    orchestrator, customer, checkout, email_channel
):
    orchestrator.confirm_payment(checkout.token)
    orchestrator.cancel_order(customer, str(checkout.order.id))

    bodies = [message.body for message in email_channel.addressed_to("ana@example.com")]
    assert any("refund has been issued" in body for body in bodies)


def test_failing_channel_does_not_fail_checkout(
    orchestrator, address, make_product, fill_cart, email_channel
):
    email_channel.refuse_with("Mailbox full")
    buyer = AuthContext(user_id="user-cam", email="cam@example.com")
    fill_cart(buyer.user_id, (make_product(), 1))

    result = orchestrator.create_order(buyer, address)

    assert result.order.status == "pending"
    assert email_channel.outbox == []


def test_orders_without_email_are_skipped(orchestrator, address, make_product, fill_cart, email_channel):
    buyer = AuthContext(user_id="user-dee")
    fill_cart(buyer.user_id, (make_product(), 1))

    orchestrator.create_order(buyer, address)

    assert email_channel.outbox == []


class _BrokenMailer(EmailPort):
    def deliver(self, message):
        raise ConnectionError("SMTP relay unreachable")


def test_crashing_mailer_does_not_fail_payment(orchestrator, checkout):
    set_email_channel(_BrokenMailer())

    order = orchestrator.confirm_payment(checkout.token)

    assert order.payment_status == "paid"
