"""Integration tests for the ordering API via TestClient."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient
from ordering.api.application import create_app
from ordering.domain import ordering

CLIENT = {"X-User-Id": "cust-001", "X-User-Role": "cliente"}
STAFF = {"X-User-Id": "emp-001", "X-User-Role": "empleado"}


@pytest.fixture()
def client(services):
    return TestClient(create_app(ordering, services))


def _add(client, product_id="prod-001", quantity=2, headers=CLIENT):
    response = client.post("/orders/cart/product", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


class TestEnvelope:
    def test_success_envelope(self, client):
        body = client.get("/orders/cart", headers=CLIENT).json()

        assert body["success"] is True
        assert body["data"] is None
        assert body["message"] == "The cart is empty"
        assert "timestamp" in body

    def test_missing_identity_is_401(self, client):
        response = client.get("/orders/cart")

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_staff_endpoints_reject_clients(self, client):
        response = client.get("/orders/all", headers=CLIENT)

        assert response.status_code == 403

    def test_request_validation_is_400(self, client):
        response = client.post("/orders/cart/product", json={"quantity": 1}, headers=CLIENT)

        assert response.status_code == 400
        assert "product_id" in response.json()["message"]

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "domain": "ordering"}


class TestCartEndpoints:
    def test_add_and_read_cart(self, client):
        added = _add(client)

        assert added["line_count"] == 1
        body = client.get("/orders/cart", headers=CLIENT).json()
        assert body["data"]["total"] == 20.0
        assert len(client.get("/orders/cart/products", headers=CLIENT).json()["data"]) == 1

    def test_update_and_remove_line(self, client):
        line_id = _add(client)["line"]["line_id"]

        response = client.patch(f"/orders/cart/product/{line_id}", json={"quantity": 5}, headers=CLIENT)
        assert response.json()["data"]["order"]["total"] == 50.0

        response = client.delete(f"/orders/cart/product/{line_id}", headers=CLIENT)
        assert response.status_code == 200
        assert response.json()["data"]["line_count"] == 0

    def test_out_of_stock_is_409(self, client):
        response = client.post("/orders/cart/product", json={"product_id": "prod-003", "quantity": 9}, headers=CLIENT)

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_clear_cart(self, client):
        _add(client)

        assert client.delete("/orders/cart", headers=CLIENT).status_code == 200
        assert client.delete("/orders/cart", headers=CLIENT).status_code == 404


class TestOrderEndpoints:
    def test_confirm_then_history(self, client):
        order_id = _add(client)["order"]["order_id"]

        response = client.post("/orders/confirm", json={"delivery_address": "Calle 5"}, headers=CLIENT)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Pending"

        history = client.get("/orders/history", headers=CLIENT).json()
        assert history["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}
        assert history["data"][0]["order_id"] == order_id

    def test_history_paging_is_validated(self, client):
        assert client.get("/orders/history?page=0", headers=CLIENT).status_code == 400

    def test_invalid_transition_is_409(self, client):
        order_id = _add(client)["order"]["order_id"]

        response = client.patch(f"/orders/{order_id}/status", json={"status": "Delivered"}, headers=STAFF)

        assert response.status_code == 409
        assert "Cannot transition from Unconfirmed to Delivered" in response.json()["message"]

    def test_create_customer_order_reports_warning(self, client, receipts):
        receipts.configure(should_succeed=False)

        response = client.post(
            "/orders/create-customer-order",
            json={"lines": [{"product_id": "prod-001", "quantity": 1}], "table_id": "table-1"},
            headers=STAFF,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order created, but the receipt could not be generated"

    def test_staff_can_add_and_remove_order_lines(self, client):
        order_id = _add(client)["order"]["order_id"]

        added = client.post(f"/orders/{order_id}/product", json={"product_id": "prod-002", "quantity": 1}, headers=STAFF)
        assert added.status_code == 201
        line_id = added.json()["data"]["line"]["line_id"]

        removed = client.delete(f"/orders/{order_id}/product/{line_id}", headers=STAFF)
        assert removed.json()["data"]["total"] == 20.0

    def test_customer_detail_status_and_cancel(self, client):
        order_id = _add(client)["order"]["order_id"]

        assert client.get(f"/orders/{order_id}/detail", headers=CLIENT).json()["data"]["order_id"] == order_id
        assert client.get(f"/orders/status/{order_id}", headers=CLIENT).json()["data"]["status"] == "Unconfirmed"

        other = {"X-User-Id": "cust-002"}
        assert client.get(f"/orders/{order_id}/detail", headers=other).status_code == 403

        response = client.patch(f"/orders/{order_id}/cancel", headers=CLIENT)
        assert response.json()["data"]["status"] == "Cancelled"

    def test_staff_get_and_delete_order(self, client):
        order_id = _add(client)["order"]["order_id"]

        assert client.get(f"/orders/{order_id}", headers=STAFF).status_code == 200
        assert client.delete(f"/orders/{order_id}", headers=STAFF).status_code == 200
        assert client.get(f"/orders/{order_id}", headers=STAFF).status_code == 404

    def test_list_all_orders(self, client):
        _add(client)

        body = client.get("/orders/all?limit=5", headers=STAFF).json()

        assert body["pagination"]["total"] == 1
        assert body["pagination"]["limit"] == 5


class TestPaymentEndpoints:
    def _method(self, client, name="Cash"):
        response = client.post("/payments/methods", json={"name": name}, headers=STAFF)
        assert response.status_code == 201
        return response.json()["data"]["method_id"]

    def test_register_payment(self, client, promotions):
        method_id = self._method(client)
        _add(client, "prod-001", 2)
        order_id = _add(client, "prod-002", 1)["order"]["order_id"]
        promotions.add_rule("prod-002", percent_off=20)

        response = client.post(f"/payments/register/{order_id}", json={"payment_method_id": method_id}, headers=CLIENT)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["payment"]["amount"] == 24.0
        assert data["order"]["status"] == "Pending"

        again = client.post(f"/payments/register/{order_id}", json={"payment_method_id": method_id}, headers=CLIENT)
        assert again.status_code == 409

    def test_receipt_failure_is_500_with_message(self, client, receipts):
        method_id = self._method(client)
        order_id = _add(client)["order"]["order_id"]
        receipts.configure(should_succeed=False)

        response = client.post(f"/payments/register/{order_id}", json={"payment_method_id": method_id}, headers=CLIENT)

        assert response.status_code == 500
        assert "receipt could not be generated" in response.json()["message"]

    def test_methods_crud(self, client):
        method_id = self._method(client)

        assert client.post("/payments/methods", json={"name": "Cash"}, headers=STAFF).status_code == 409
        assert client.get("/payments/methods", headers=CLIENT).json()["data"][0]["name"] == "Cash"
        assert client.get(f"/payments/methods/{method_id}", headers=STAFF).status_code == 200
        assert client.get(f"/payments/methods/{method_id}", headers=CLIENT).status_code == 403
        renamed = client.put(f"/payments/methods/{method_id}", json={"name": "Efectivo"}, headers=STAFF)
        assert renamed.json()["data"]["name"] == "Efectivo"
        assert client.delete(f"/payments/methods/{method_id}", headers=STAFF).status_code == 200
        assert client.get(f"/payments/methods/{method_id}", headers=STAFF).status_code == 404

    def test_history_detail_and_pending(self, client):
        method_id = self._method(client)
        order_id = _add(client)["order"]["order_id"]
        _add(client, headers={"X-User-Id": "cust-002"})
        paid = client.post(f"/payments/register/{order_id}", json={"payment_method_id": method_id}, headers=CLIENT)
        payment_id = paid.json()["data"]["payment"]["payment_id"]

        assert client.get("/payments/pending-orders", headers=STAFF).json()["pagination"]["total"] == 1
        assert client.get("/payments/history", headers=STAFF).json()["pagination"]["total"] == 1
        assert client.get("/payments/all", headers=STAFF).json()["data"][0]["payment_id"] == payment_id
        detail = client.get(f"/payments/{payment_id}", headers=STAFF).json()["data"]
        assert detail["order"]["order_id"] == order_id

    def test_payment_detail_is_staff_only(self, client):
        method_id = self._method(client)
        order_id = _add(client)["order"]["order_id"]
        paid = client.post(f"/payments/register/{order_id}", json={"payment_method_id": method_id}, headers=CLIENT)
        payment_id = paid.json()["data"]["payment"]["payment_id"]

        response = client.get(f"/payments/{payment_id}", headers={"X-User-Id": "cust-002", "X-User-Role": "cliente"})

        assert response.status_code == 403
        assert response.json()["data"] is None

    def test_receipt_download(self, client, services, tmp_path):
        from ordering.gateways.receipt import FileReceiptGenerator

        services.payments.receipts = FileReceiptGenerator(str(tmp_path))
        method_id = self._method(client)
        order_id = _add(client)["order"]["order_id"]
        paid = client.post(f"/payments/register/{order_id}", json={"payment_method_id": method_id}, headers=CLIENT)
        payment_id = paid.json()["data"]["payment"]["payment_id"]

        response = client.get(f"/payments/{payment_id}/receipt", headers=CLIENT)

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert f"Receipt for order #{order_id}" in response.text


class TestUnexpectedErrors:
    def test_unhandled_exception_is_a_generic_500(self, services, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("database is on fire")

        monkeypatch.setattr(services.queries, "get_order", explode)
        client = TestClient(create_app(ordering, services), raise_server_exceptions=False)

        response = client.get("/orders/some-order", headers=STAFF)

        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error"
        assert "fire" not in response.text


class TestConcurrentRequests:
    """Requests sharing one event loop, as they do under a real server."""

    def test_a_slow_request_does_not_stall_other_requests(self, services, inventory):
        entered, release = threading.Event(), threading.Event()

        def slow_lookup(product_id):
            entered.set()
            release.wait(timeout=5)

        with TestClient(create_app(ordering, services)) as client, ThreadPoolExecutor(max_workers=1) as pool:
            inventory.on_lookup = slow_lookup
            adding = pool.submit(_add, client)
            assert entered.wait(timeout=5)

            started = time.monotonic()
            health = client.get("/health")
            elapsed = time.monotonic() - started
            release.set()
            added = adding.result(timeout=10)

        assert health.status_code == 200
        assert elapsed < 2
        assert added["line_count"] == 1

    def test_concurrent_registrations_for_one_order(self, services, inventory):
        reserving, release = threading.Event(), threading.Event()

        def slow_reservation(product_id, quantity):
            reserving.set()
            release.wait(timeout=5)

        with TestClient(create_app(ordering, services)) as client, ThreadPoolExecutor(max_workers=1) as pool:
            method_id = client.post("/payments/methods", json={"name": "Cash"}, headers=STAFF).json()["data"]["method_id"]
            order_id = _add(client)["order"]["order_id"]
            path = f"/payments/register/{order_id}"
            body = {"payment_method_id": method_id}

            inventory.on_reduce = slow_reservation
            first = pool.submit(client.post, path, json=body, headers=CLIENT)
            assert reserving.wait(timeout=5)
            second = client.post(path, json=body, headers=CLIENT)
            release.set()
            first_response = first.result(timeout=10)

        assert second.status_code == 409
        assert "already in progress" in second.json()["message"]
        assert first_response.status_code == 201
        assert services.payment_admin.get_all_payments().value.total == 1
