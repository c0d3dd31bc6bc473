import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.errors import (
    ConcurrencyConflictError,
    ForbiddenError,
    InvalidStateTransitionError,
    StockRestoreError,
)
from storefront.order.fulfillment import AdvanceOrderStatus


@pytest.fixture
def placed(orchestrator, customer, address, make_product, fill_cart):
    """Place an order for two units of a five-unit product, optionally paying for it."""

    def _placed(paid=False):
        product = make_product(price=10.0, stock=5)
        fill_cart(customer.user_id, (product, 2))
        result = orchestrator.create_order(customer, address)
        if paid:
            orchestrator.confirm_payment(result.token)
        return product, str(result.order.id)

    return _placed


def _advance(order_id, *statuses):
    for status in statuses:
        current_domain.process(AdvanceOrderStatus(order_id=order_id, status=status), asynchronous=False)


class TestCancelOrder:
    def test_unpaid_order_restores_stock_without_refund(
        self, orchestrator, gateway, customer, placed, stock_of
    ):
        product, order_id = placed()

        result = orchestrator.cancel_order(customer, order_id, reason="Changed my mind")

        assert result.refund_processed is False
        assert result.order.status == "cancelled"
        assert result.order.payment_status == "pending"
        assert result.order.cancelled_by == "customer"
        assert stock_of(product) == 5
        assert gateway.calls_to("refund") == []

    def test_paid_order_is_refunded_first(self, orchestrator, gateway, customer, placed, stock_of):
        product, order_id = placed(paid=True)

        result = orchestrator.cancel_order(customer, order_id)

        assert result.refund_processed is True
        assert result.order.status == "cancelled"
        assert result.order.payment_status == "refunded"
        assert result.order.refunded_amount == 20.0
        assert stock_of(product) == 5
        [refund] = gateway.calls_to("refund")
        assert refund["amount"] == 20.0

    def test_cancel_twice_refunds_and_restores_once(self, orchestrator, gateway, customer, placed, stock_of):
        product, order_id = placed(paid=True)
        orchestrator.cancel_order(customer, order_id)

        with pytest.raises(InvalidStateTransitionError, match="already cancelled"):
            orchestrator.cancel_order(customer, order_id)

        assert len(gateway.calls_to("refund")) == 1
        assert stock_of(product) == 5

    def test_failed_payment_then_cancel_restores_stock_once(
        self, orchestrator, gateway, customer, placed, stock_of
    ):
        gateway.configure(should_succeed=False)
        product, order_id = placed(paid=True)
        assert stock_of(product) == 5

        orchestrator.cancel_order(customer, order_id)

        assert stock_of(product) == 5

    def test_failed_restore_can_be_finished_by_cancelling_again(
        self, orchestrator, customer, placed, stock_of, monkeypatch
    ):
        product, order_id = placed()
        increment = orchestrator.guard._increment
        attempts = []

        def contended_once(line):
            attempts.append(line)
            if len(attempts) == 1:
                raise ConcurrencyConflictError(product_id=line.product_id)
            increment(line)

        monkeypatch.setattr(orchestrator.guard, "_increment", contended_once)

        with pytest.raises(StockRestoreError):
            orchestrator.cancel_order(customer, order_id)

        order = orchestrator._orders.get(order_id)
        assert order.status == "cancelled"
        assert order.stock_restored is False
        assert stock_of(product) == 3

        result = orchestrator.cancel_order(customer, order_id)

        assert result.order.stock_restored is True
        assert stock_of(product) == 5
        with pytest.raises(InvalidStateTransitionError, match="already cancelled"):
            orchestrator.cancel_order(customer, order_id)
        assert stock_of(product) == 5

    def test_partial_restore_is_not_repeated_on_retry(
        self, orchestrator, customer, address, make_product, fill_cart, stock_of, monkeypatch
    ):
        mate = make_product(price=10.0, stock=5)
        yerba = make_product(name="Yerba 1kg", price=4.5, stock=5)
        fill_cart(customer.user_id, (mate, 2), (yerba, 1))
        order_id = str(orchestrator.create_order(customer, address).order.id)
        increment = orchestrator.guard._increment
        failing = {str(yerba.id)}

        def contended(line):
            if line.product_id in failing:
                raise ConcurrencyConflictError(product_id=line.product_id)
            increment(line)

        monkeypatch.setattr(orchestrator.guard, "_increment", contended)

        with pytest.raises(StockRestoreError):
            orchestrator.cancel_order(customer, order_id)
        assert stock_of(mate) == 5
        assert stock_of(yerba) == 4

        failing.clear()
        orchestrator.cancel_order(customer, order_id)

        assert stock_of(mate) == 5
        assert stock_of(yerba) == 5

    def test_shipped_order_cannot_be_cancelled(self, orchestrator, gateway, customer, placed, stock_of):
        product, order_id = placed(paid=True)
        _advance(order_id, "processing", "shipped")

        with pytest.raises(InvalidStateTransitionError):
            orchestrator.cancel_order(customer, order_id)

        assert gateway.calls_to("refund") == []
        assert stock_of(product) == 3

    def test_refund_failure_leaves_order_untouched(self, orchestrator, gateway, customer, placed, stock_of):
        from storefront.errors import GatewayUnavailableError

        product, order_id = placed(paid=True)
        gateway.fail_on("refund", GatewayUnavailableError())

        with pytest.raises(GatewayUnavailableError):
            orchestrator.cancel_order(customer, order_id)

        order = orchestrator._orders.get(order_id)
        assert order.status == "confirmed"
        assert order.payment_status == "paid"
        assert stock_of(product) == 3

    def test_other_customer_cannot_cancel(self, orchestrator, other_customer, placed):
        _, order_id = placed()
        with pytest.raises(ForbiddenError):
            orchestrator.cancel_order(other_customer, order_id)

    def test_admin_cancellation_is_recorded(self, orchestrator, admin, placed):
        _, order_id = placed()
        result = orchestrator.cancel_order(admin, order_id, reason="Fraud check")
        assert result.order.cancelled_by == "admin"


class TestRefundOrder:
    def test_full_refund_cancels_and_restores_stock(self, orchestrator, admin, placed, stock_of):
        product, order_id = placed(paid=True)

        outcome = orchestrator.refund_order(admin, order_id)

        assert outcome.cancelled is True
        assert outcome.refund.type == "NULLIFIED"
        assert outcome.order.payment_status == "refunded"
        assert outcome.order.status == "cancelled"
        assert stock_of(product) == 5

    def test_partial_refund(self, orchestrator, admin, placed):
        _, order_id = placed(paid=True)

        outcome = orchestrator.refund_order(admin, order_id, amount=5.0)

        assert outcome.order.refunded_amount == 5.0
        assert outcome.refund.balance == 15.0

    def test_refund_of_shipped_order_does_not_cancel(self, orchestrator, admin, placed, stock_of):
        product, order_id = placed(paid=True)
        _advance(order_id, "processing", "shipped")

        outcome = orchestrator.refund_order(admin, order_id)

        assert outcome.cancelled is False
        assert outcome.order.status == "shipped"
        assert outcome.order.payment_status == "refunded"
        assert stock_of(product) == 3

    def test_amount_above_total_is_rejected(self, orchestrator, admin, placed):
        _, order_id = placed(paid=True)
        with pytest.raises(ValidationError):
            orchestrator.refund_order(admin, order_id, amount=25.0)

    def test_unpaid_order_cannot_be_refunded(self, orchestrator, admin, placed):
        _, order_id = placed()
        with pytest.raises(InvalidStateTransitionError):
            orchestrator.refund_order(admin, order_id)

    def test_customers_cannot_refund(self, orchestrator, customer, placed):
        _, order_id = placed(paid=True)
        with pytest.raises(ForbiddenError):
            orchestrator.refund_order(customer, order_id)
