"""Stock contention scenario.

Every user races for the same product. Run it against a product seeded
with a small stock and check afterwards that stock never went negative
and that the number of paid units matches what was sold.
"""

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import admin_headers, contended_product_id, shipping_address, shopper
from loadtests.helpers.response import extract_error_detail


class LastUnitRaceUser(HttpUser):
    """Add the hot product and check out immediately, as fast as possible."""

    wait_time = constant_pacing(0.2)

    def on_start(self):
        self.product_id = contended_product_id()
        _, self.headers = shopper()

    @task(10)
    def grab_and_checkout(self):
        if not self.product_id:
            return

        with self.client.post(
            "/cart/add",
            json={"productId": self.product_id, "quantity": 1},
            headers=self.headers,
            catch_response=True,
            name="[RACE] POST /cart/add",
        ) as resp:
            if resp.status_code == 400:
                resp.success()
                return
            if resp.status_code != 200:
                resp.failure(f"Add failed: {resp.status_code} {extract_error_detail(resp)}")
                return

        with self.client.post(
            "/orders",
            json={"shippingAddress": shipping_address()},
            headers=self.headers,
            catch_response=True,
            name="[RACE] POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.client.post(
                    "/payments/confirm",
                    json={"token": resp.json()["data"]["token"]},
                    name="[RACE] POST /payments/confirm",
                )
            elif resp.status_code == 400:
                # Insufficient stock is the expected loser outcome
                resp.success()
                self.client.delete("/cart/clear", headers=self.headers, name="[RACE] DELETE /cart/clear")
            else:
                resp.failure(f"Checkout failed: {resp.status_code} {extract_error_detail(resp)}")

    @task(1)
    def watch_stats(self):
        self.client.get("/orders/admin/stats?period=7d", headers=admin_headers(), name="[RACE] GET /orders/admin/stats")
