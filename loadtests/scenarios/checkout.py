"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys: the happy path from cart to paid
order, a shopper who pays and then cancels (refund plus stock restore),
and a shopper who abandons the gateway.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cancel_reason, cart_lines, order_notes, shipping_address, shopper
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CheckoutState


class _CheckoutSteps(SequentialTaskSet):
    """Shared steps: fill the cart and place the order."""

    def on_start(self):
        user_id, headers = shopper()
        self.state = CheckoutState(user_id=user_id, headers=headers)

    def fill_cart(self):
        for line in cart_lines():
            with self.client.post(
                "/cart/add",
                json=line,
                headers=self.state.headers,
                catch_response=True,
                name="POST /cart/add",
            ) as resp:
                if resp.status_code == 200:
                    self.state.cart_lines += 1
                elif resp.status_code == 400:
                    # Sold out under load; the journey continues with what fits
                    resp.success()
                else:
                    resp.failure(f"Add to cart failed: {resp.status_code} {extract_error_detail(resp)}")

        if not self.state.cart_lines:
            self.interrupt()

    def place_order(self):
        with self.client.post(
            "/orders",
            json={"shippingAddress": shipping_address(), "notes": order_notes()},
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                data = resp.json()["data"]
                self.state.order_id = data["orderId"]
                self.state.token = data["token"]
            elif resp.status_code == 400:
                # Lost the stock race between add and checkout
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Create order failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    def confirm(self):
        with self.client.post(
            "/payments/confirm",
            json={"token_ws": self.state.token},
            catch_response=True,
            name="POST /payments/confirm",
        ) as resp:
            if resp.status_code == 200:
                self.state.payment_status = resp.json()["data"]["paymentStatus"]
            else:
                resp.failure(f"Confirm failed: {resp.status_code} {extract_error_detail(resp)}")


class PaidOrderJourney(_CheckoutSteps):
    """Add items -> Review cart -> Create order -> Pay -> Confirm again -> View order."""

    @task
    def add_items(self):
        self.fill_cart()

    @task
    def review_cart(self):
        self.client.get("/cart/summary", headers=self.state.headers, name="GET /cart/summary")

    @task
    def create_order(self):
        self.place_order()

    @task
    def pay(self):
        self.confirm()

    @task
    def confirm_again(self):
        # Browsers retry the return page; the second commit must be a no-op
        self.confirm()

    @task
    def view_order(self):
        self.client.get(f"/orders/{self.state.order_id}", headers=self.state.headers, name="GET /orders/{id}")

    @task
    def done(self):
        self.interrupt()


class PayThenCancelJourney(_CheckoutSteps):
    """Add items -> Create order -> Pay -> Cancel (refund and stock restore)."""

    @task
    def add_items(self):
        self.fill_cart()

    @task
    def create_order(self):
        self.place_order()

    @task
    def pay(self):
        self.confirm()

    @task
    def cancel(self):
        with self.client.patch(
            f"/orders/{self.state.order_id}/cancel",
            json={"reason": cancel_reason()},
            headers=self.state.headers,
            catch_response=True,
            name="PATCH /orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel failed: {resp.status_code} {extract_error_detail(resp)}")
        self.interrupt()


class AbandonedPaymentJourney(_CheckoutSteps):
    """Add items -> Create order -> Abort at the gateway (TBK_TOKEN callback)."""

    @task
    def add_items(self):
        self.fill_cart()

    @task
    def create_order(self):
        self.place_order()

    @task
    def abort(self):
        with self.client.post(
            "/payments/confirm",
            json={"TBK_TOKEN": self.state.token},
            catch_response=True,
            name="POST /payments/confirm [aborted]",
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Abort not rejected: {resp.status_code} {extract_error_detail(resp)}")
        self.interrupt()


class ShopperUser(HttpUser):
    """Realistic shopper mix: mostly paid orders, some cancellations and abandons."""

    wait_time = between(1, 3)
    tasks = {PaidOrderJourney: 6, PayThenCancelJourney: 2, AbandonedPaymentJourney: 2}
