"""Ordering service load test scenarios.

Three stateful SequentialTaskSet journeys: a browsing customer who edits
and abandons a cart, a customer who checks out and pays, and a staff member
who enters an in-person order and works it through the back office.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    cart_item_data,
    confirm_data,
    customer_headers,
    customer_id,
    customer_order_data,
    payment_method_name,
    quantity_update_data,
    staff_headers,
    staff_id,
)
from loadtests.helpers.response import envelope_data, extract_error_detail
from loadtests.helpers.state import CartState, CheckoutState, StaffState


class CartLifecycleJourney(SequentialTaskSet):
    """Add Items -> View Cart -> Update Quantity -> Remove Line -> Clear.

    Models a browsing customer who adds items, changes their mind,
    and ultimately abandons the cart.
    """

    def on_start(self):
        self.state = CartState(customer_id=customer_id())
        self.headers = customer_headers(self.state.customer_id)

    def _add_item(self, label):
        with self.client.post(
            "/orders/cart/product",
            json=cart_item_data(),
            headers=self.headers,
            catch_response=True,
            name="POST /orders/cart/product",
        ) as resp:
            if resp.status_code == 201:
                data = envelope_data(resp)
                self.state.order_id = data["order"]["order_id"]
                self.state.line_ids.append(data["line"]["line_id"])
            else:
                resp.failure(f"{label} failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def add_item_1(self):
        self._add_item("Add cart item")
        if not self.state.order_id:
            self.interrupt()

    @task
    def add_item_2(self):
        self._add_item("Add cart item 2")

    @task
    def view_cart(self):
        with self.client.get(
            "/orders/cart",
            headers=self.headers,
            catch_response=True,
            name="GET /orders/cart",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"View cart failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def update_quantity(self):
        line_id = self.state.line_ids[0]
        with self.client.patch(
            f"/orders/cart/product/{line_id}",
            json=quantity_update_data(),
            headers=self.headers,
            catch_response=True,
            name="PATCH /orders/cart/product/{id}",
        ) as resp:
            if resp.status_code not in (200, 409):
                resp.failure(f"Update quantity failed: {resp.status_code}: {extract_error_detail(resp)}")
            else:
                resp.success()

    @task
    def remove_line(self):
        line_id = self.state.line_ids[-1]
        with self.client.delete(
            f"/orders/cart/product/{line_id}",
            headers=self.headers,
            catch_response=True,
            name="DELETE /orders/cart/product/{id}",
        ) as resp:
            # Both adds may have merged into one line that the update removed
            if resp.status_code not in (200, 404):
                resp.failure(f"Remove line failed: {resp.status_code}: {extract_error_detail(resp)}")
            else:
                resp.success()

    @task
    def clear_cart(self):
        with self.client.delete(
            "/orders/cart",
            headers=self.headers,
            catch_response=True,
            name="DELETE /orders/cart",
        ) as resp:
            if resp.status_code not in (200, 404):
                resp.failure(f"Clear cart failed: {resp.status_code}: {extract_error_detail(resp)}")
            else:
                resp.success()

    @task
    def done(self):
        self.interrupt()


class CheckoutJourney(SequentialTaskSet):
    """Add Items -> Confirm -> Pick Payment Method -> Pay -> Check Status.

    The happy path: a cart becomes a paid ``Pending`` order. Customer ids
    are generated, so confirmation only succeeds against a client service
    that knows them; payment does not depend on confirmation.
    """

    def on_start(self):
        self.state = CheckoutState(customer_id=customer_id())
        self.headers = customer_headers(self.state.customer_id)

    @task
    def add_items(self):
        for _ in range(2):
            with self.client.post(
                "/orders/cart/product",
                json=cart_item_data(),
                headers=self.headers,
                catch_response=True,
                name="POST /orders/cart/product",
            ) as resp:
                if resp.status_code == 201:
                    self.state.order_id = envelope_data(resp)["order"]["order_id"]
                else:
                    resp.failure(f"Add cart item failed: {resp.status_code}: {extract_error_detail(resp)}")
        if not self.state.order_id:
            self.interrupt()

    @task
    def confirm(self):
        with self.client.post(
            "/orders/confirm",
            json=confirm_data(),
            headers=self.headers,
            catch_response=True,
            name="POST /orders/confirm",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "Pending"
            elif resp.status_code == 403:
                # Not a registered client; pay the cart directly
                resp.success()
            else:
                resp.failure(f"Confirm failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def choose_payment_method(self):
        with self.client.get(
            "/payments/methods",
            headers=self.headers,
            catch_response=True,
            name="GET /payments/methods",
        ) as resp:
            methods = envelope_data(resp) or []
            if resp.status_code != 200 or not methods:
                resp.failure(f"No payment methods: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
            self.state.payment_method_id = methods[0]["method_id"]

    @task
    def register_payment(self):
        with self.client.post(
            f"/payments/register/{self.state.order_id}",
            json={"payment_method_id": self.state.payment_method_id},
            headers=self.headers,
            catch_response=True,
            name="POST /payments/register/{id}",
        ) as resp:
            if resp.status_code == 201:
                self.state.payment_id = envelope_data(resp)["payment"]["payment_id"]
                self.state.current_status = "Pending"
            else:
                resp.failure(f"Register payment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def check_status(self):
        with self.client.get(
            f"/orders/status/{self.state.order_id}",
            headers=self.headers,
            catch_response=True,
            name="GET /orders/status/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Status check failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def view_history(self):
        with self.client.get(
            "/orders/history?limit=5",
            headers=self.headers,
            catch_response=True,
            name="GET /orders/history",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"History failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class StaffCounterJourney(SequentialTaskSet):
    """Create In-Person Order -> Add Line -> Review Pending -> Delete.

    Models counter staff entering an order and then discarding it before
    payment, plus the back-office list views they poll.
    """

    def on_start(self):
        self.state = StaffState(staff_id=staff_id())
        self.headers = staff_headers(self.state.staff_id)

    @task
    def create_customer_order(self):
        with self.client.post(
            "/orders/create-customer-order",
            json=customer_order_data(),
            headers=self.headers,
            catch_response=True,
            name="POST /orders/create-customer-order",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = envelope_data(resp)["order"]["order_id"]
            else:
                resp.failure(f"Create customer order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_line(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/product",
            json=cart_item_data(),
            headers=self.headers,
            catch_response=True,
            name="POST /orders/{id}/product",
        ) as resp:
            if resp.status_code == 201:
                self.state.line_ids.append(envelope_data(resp)["line"]["line_id"])
            elif resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Add order line failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def list_pending(self):
        with self.client.get(
            "/payments/pending-orders",
            headers=self.headers,
            catch_response=True,
            name="GET /payments/pending-orders",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Pending orders failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def list_all(self):
        with self.client.get(
            "/orders/all?limit=20",
            headers=self.headers,
            catch_response=True,
            name="GET /orders/all",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"All orders failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def delete_order(self):
        with self.client.delete(
            f"/orders/{self.state.order_id}",
            headers=self.headers,
            catch_response=True,
            name="DELETE /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Delete order failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderingUser(HttpUser):
    """Locust user simulating ordering service traffic.

    Weighted distribution:
    - 45% Cart lifecycle (browsing, abandonment)
    - 35% Checkout and payment (happy path)
    - 20% Staff counter orders
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        CartLifecycleJourney: 9,
        CheckoutJourney: 7,
        StaffCounterJourney: 4,
    }

    def on_start(self):
        """Make sure at least one payment method exists for checkouts."""
        headers = staff_headers(staff_id())
        with self.client.get(
            "/payments/methods", headers=headers, catch_response=True, name="GET /payments/methods"
        ) as resp:
            if envelope_data(resp):
                return
            resp.success()
        self.client.post(
            "/payments/methods",
            json={"name": payment_method_name()},
            headers=headers,
            name="POST /payments/methods",
        )
