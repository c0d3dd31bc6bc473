import threading
import time

import pytest
from fastapi.testclient import TestClient
from storefront.api import create_app


@pytest.fixture
def place_order(client, ana, shipping, make_product):
    def _place(headers=None, quantity=2, stock=5):
        headers = headers or ana
        product = make_product(price=10.0, stock=stock)
        client.post("/cart/add", json={"productId": str(product.id), "quantity": quantity}, headers=headers)
        response = client.post("/orders", json={"shippingAddress": shipping, "notes": "Ring twice"}, headers=headers)
        return product, response

    return _place


class TestCreateOrder:
    def test_create_order(self, client, ana, place_order, stock_of):
        product, response = place_order()

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["orderNumber"].startswith("ORD-")
        assert data["amount"] == 20.0
        assert data["redirectUrl"] == f"https://fake-gateway.local/webpay/init?token_ws={data['token']}"
        assert stock_of(product) == 3
        assert client.get("/cart", headers=ana).json()["data"]["items"] == []

    def test_empty_cart(self, client, ana, shipping):
        response = client.post("/orders", json={"shippingAddress": shipping}, headers=ana)

        assert response.status_code == 400
        assert response.json()["message"] == "Your cart is empty"

    def test_missing_address_field(self, client, ana, shipping):
        del shipping["city"]
        response = client.post("/orders", json={"shippingAddress": shipping}, headers=ana)

        assert response.status_code == 400
        assert "city" in response.json()["message"]


class TestReadOrders:
    def test_get_order_includes_live_gateway_status(self, client, ana, place_order):
        _, created = place_order()
        order_id = created.json()["data"]["orderId"]

        data = client.get(f"/orders/{order_id}", headers=ana).json()["data"]

        assert data["status"] == "pending"
        assert data["paymentStatus"] == "pending"
        assert data["paymentMethod"] == "webpay"
        assert data["notes"] == "Ring twice"
        assert data["shippingAddress"]["zipCode"] == "7500000"
        assert data["items"][0]["unitPrice"] == 10.0
        assert data["liveGatewayStatus"] == "INITIALIZED"

    def test_other_customer_is_forbidden(self, client, ben, place_order):
        _, created = place_order()
        response = client.get(f"/orders/{created.json()['data']['orderId']}", headers=ben)
        assert response.status_code == 403

    def test_unknown_order(self, client, ana):
        assert client.get("/orders/missing", headers=ana).status_code == 404

    def test_my_orders_paginated(self, client, ana, ben, place_order):
        place_order()
        place_order()
        place_order(headers=ben)

        page = client.get("/orders/mine", params={"limit": 1}, headers=ana).json()["data"]

        assert len(page["orders"]) == 1
        assert page["pagination"] == {
            "currentPage": 1,
            "totalPages": 2,
            "totalOrders": 2,
            "hasNextPage": True,
            "hasPrevPage": False,
        }

    def test_my_orders_filtered_by_payment_status(self, client, ana, place_order):
        place_order()
        response = client.get("/orders/mine", params={"paymentStatus": "paid"}, headers=ana)
        assert response.json()["data"]["orders"] == []


class TestCancelOrder:
    def test_cancel_pending_order(self, client, ana, place_order, stock_of):
        product, created = place_order()
        order_id = created.json()["data"]["orderId"]

        response = client.patch(f"/orders/{order_id}/cancel", json={"reason": "Changed my mind"}, headers=ana)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "cancelled"
        assert data["refundProcessed"] is False
        assert stock_of(product) == 5

    def test_cancel_paid_order_refunds(self, client, ana, place_order, stock_of):
        product, created = place_order()
        token = created.json()["data"]["token"]
        client.post("/payments/confirm", json={"token_ws": token})

        data = client.patch(f"/orders/{created.json()['data']['orderId']}/cancel", headers=ana).json()["data"]

        assert data["refundProcessed"] is True
        assert data["paymentStatus"] == "refunded"
        assert stock_of(product) == 5

    def test_cancel_twice(self, client, ana, place_order):
        _, created = place_order()
        order_id = created.json()["data"]["orderId"]
        client.patch(f"/orders/{order_id}/cancel", headers=ana)

        response = client.patch(f"/orders/{order_id}/cancel", headers=ana)

        assert response.status_code == 400
        assert response.json()["message"] == "Order is already cancelled"


class TestAdminEndpoints:
    def test_customers_are_forbidden(self, client, ana):
        assert client.get("/orders/admin/all", headers=ana).status_code == 403
        assert client.get("/orders/admin/stats", headers=ana).status_code == 403

    def test_list_all_orders(self, client, ops, ben, place_order):
        place_order()
        place_order(headers=ben)

        all_orders = client.get("/orders/admin/all", headers=ops).json()["data"]
        assert all_orders["pagination"]["totalOrders"] == 2

        bens = client.get("/orders/admin/all", params={"userId": "user-ben"}, headers=ops).json()["data"]
        assert bens["pagination"]["totalOrders"] == 1

    def test_stats(self, client, ops, place_order):
        _, created = place_order()
        client.post("/payments/confirm", json={"token": created.json()["data"]["token"]})

        data = client.get("/orders/admin/stats", params={"period": "7d"}, headers=ops).json()["data"]

        assert data["period"] == "7d"
        assert data["totalOrders"] == 1
        assert data["totalRevenue"] == 20.0
        assert data["conversionRate"] == 100.0
        assert data["ordersByStatus"] == {"confirmed": 1}

    def test_advance_status(self, client, ops, place_order):
        _, created = place_order()
        client.post("/payments/confirm", json={"token": created.json()["data"]["token"]})
        order_id = created.json()["data"]["orderId"]

        response = client.patch(
            f"/orders/admin/{order_id}/status", json={"status": "processing", "notes": "Packing"}, headers=ops
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "processing"

    def test_illegal_transition(self, client, ops, place_order):
        _, created = place_order()
        order_id = created.json()["data"]["orderId"]

        response = client.patch(f"/orders/admin/{order_id}/status", json={"status": "delivered"}, headers=ops)

        assert response.status_code == 400

    def test_unknown_status_value(self, client, ops, place_order):
        _, created = place_order()
        order_id = created.json()["data"]["orderId"]

        response = client.patch(f"/orders/admin/{order_id}/status", json={"status": "lost"}, headers=ops)

        assert response.status_code == 400

    def test_status_cancelled_goes_through_cancellation(self, client, ops, place_order, stock_of):
        product, created = place_order()
        order_id = created.json()["data"]["orderId"]

        response = client.patch(f"/orders/admin/{order_id}/status", json={"status": "cancelled"}, headers=ops)

        assert response.json()["data"]["status"] == "cancelled"
        assert stock_of(product) == 5


class TestSlowGateway:
    def test_checkout_waiting_on_gateway_does_not_stall_other_requests(
        self, settings, gateway, ana, shipping, make_product, monkeypatch
    ):
        create = gateway.create
        in_gateway = threading.Event()

        def slow_create(*args, **kwargs):
            in_gateway.set()
            time.sleep(1.5)
            return create(*args, **kwargs)

        monkeypatch.setattr(gateway, "create", slow_create)
        product = make_product(price=10.0, stock=5)
        checkout = {}

        # One event loop serves every request made inside the block
        with TestClient(create_app(settings=settings, gateway=gateway)) as client:
            client.post("/cart/add", json={"productId": str(product.id), "quantity": 1}, headers=ana)

            def place():
                checkout["response"] = client.post("/orders", json={"shippingAddress": shipping}, headers=ana)

            worker = threading.Thread(target=place)
            worker.start()
            assert in_gateway.wait(timeout=5)

            began = time.monotonic()
            health = client.get("/health")
            latency = time.monotonic() - began
            worker.join()

        assert health.status_code == 200
        assert latency < 0.5
        assert checkout["response"].status_code == 201
