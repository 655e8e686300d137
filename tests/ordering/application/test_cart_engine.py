"""Application tests for CartEngine: the customer's single unconfirmed order."""

from ordering.errors import ErrorKind
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderStatus
from ordering.payment.payment import Payment
from protean import current_domain


def _cart(customer_id="cust-001"):
    return current_domain.repository_for(Order).find_cart(customer_id)


def _lines(order):
    return current_domain.repository_for(OrderLine).find_lines_by_order(order.id)


class TestAddItem:
    def test_first_item_opens_a_cart(self, services):
        result = services.cart.add_item("cust-001", "prod-001", 2)

        assert result.ok
        assert result.message == "Product added to cart"
        assert result.value["line_count"] == 1
        assert result.value["order"]["status"] == "Unconfirmed"
        assert result.value["order"]["total"] == 20.0

        order = _cart()
        assert order is not None
        assert order.total == 20.0

    def test_adding_the_same_product_merges_into_one_line(self, services):
        services.cart.add_item("cust-001", "prod-001", 2)
        result = services.cart.add_item("cust-001", "prod-001", 2)

        assert result.value["line_count"] == 1
        lines = _lines(_cart())
        assert len(lines) == 1
        assert lines[0].quantity == 4
        assert _cart().total == 40.0

    def test_merge_uses_current_inventory_price(self, services, inventory):
        services.cart.add_item("cust-001", "prod-001", 1)
        inventory.add_product("prod-001", price=12.0, stock=50)

        services.cart.add_item("cust-001", "prod-001", 1)

        line = _lines(_cart())[0]
        assert line.unit_price == 12.0
        assert line.subtotal == 24.0

    def test_total_is_sum_of_line_subtotals(self, services):
        services.cart.add_item("cust-001", "prod-001", 2)
        services.cart.add_item("cust-001", "prod-002", 3)

        order = _cart()
        assert order.total == sum(line.subtotal for line in _lines(order)) == 35.0

    def test_customer_has_at_most_one_cart(self, services):
        services.cart.add_item("cust-001", "prod-001", 1)
        services.cart.add_item("cust-001", "prod-002", 1)

        carts = current_domain.repository_for(Order).unconfirmed(1, 10)
        assert carts.total == 1

    def test_rejects_non_positive_quantity(self, services):
        result = services.cart.add_item("cust-001", "prod-001", 0)

        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION
        assert _cart() is None

    def test_rejects_unknown_or_inactive_product(self, services):
        assert services.cart.add_item("cust-001", "prod-missing", 1).kind == ErrorKind.NOT_FOUND
        assert services.cart.add_item("cust-001", "prod-off", 1).kind == ErrorKind.NOT_FOUND

    def test_out_of_stock_product_creates_nothing(self, services, inventory):
        inventory.add_product("prod-empty", price=4.0, stock=0)

        result = services.cart.add_item("cust-001", "prod-empty", 1)

        assert result.kind == ErrorKind.CONFLICT
        assert "not available" in result.message
        assert _cart() is None

    def test_cumulative_quantity_is_checked_against_stock(self, services):
        services.cart.add_item("cust-001", "prod-003", 2)

        result = services.cart.add_item("cust-001", "prod-003", 1)

        assert result.kind == ErrorKind.CONFLICT
        assert _lines(_cart())[0].quantity == 2

    def test_inventory_outage_is_upstream_unavailable(self, services, inventory):
        inventory.configure(available=False)

        result = services.cart.add_item("cust-001", "prod-001", 1)

        assert result.kind == ErrorKind.UPSTREAM_UNAVAILABLE
        assert result.status_code == 503


class TestUpdateAndRemove:
    def test_update_quantity_recomputes_totals(self, services):
        added = services.cart.add_item("cust-001", "prod-001", 1)
        line_id = added.value["line"]["line_id"]

        result = services.cart.update_line_quantity(line_id, 3, "cust-001")

        assert result.ok
        assert result.value["line"]["subtotal"] == 30.0
        assert _cart().total == 30.0

    def test_zero_quantity_removes_the_line(self, services):
        services.cart.add_item("cust-001", "prod-002", 1)
        added = services.cart.add_item("cust-001", "prod-001", 1)

        result = services.cart.update_line_quantity(added.value["line"]["line_id"], 0, "cust-001")

        assert result.ok
        assert result.value["line_count"] == 1
        assert _cart().total == 5.0

    def test_remove_line_decrements_total(self, services):
        services.cart.add_item("cust-001", "prod-001", 2)
        added = services.cart.add_item("cust-001", "prod-002", 1)

        result = services.cart.remove_line(added.value["line"]["line_id"], "cust-001")

        assert result.ok
        assert _cart().total == 20.0
        assert len(_lines(_cart())) == 1

    def test_other_customers_cannot_touch_the_line(self, services):
        added = services.cart.add_item("cust-001", "prod-001", 1)
        line_id = added.value["line"]["line_id"]

        assert services.cart.update_line_quantity(line_id, 5, "cust-002").kind == ErrorKind.FORBIDDEN
        assert services.cart.remove_line(line_id, "cust-002").kind == ErrorKind.FORBIDDEN

    def test_unknown_line(self, services):
        assert services.cart.remove_line("line-missing", "cust-001").kind == ErrorKind.NOT_FOUND

    def test_lines_of_confirmed_orders_cannot_change(self, services):
        added = services.cart.add_item("cust-001", "prod-001", 1)
        services.lifecycle.confirm_order("cust-001")

        result = services.cart.update_line_quantity(added.value["line"]["line_id"], 2, "cust-001")

        assert result.kind == ErrorKind.CONFLICT


class TestClearCart:
    def test_clear_deletes_order_and_lines(self, services):
        services.cart.add_item("cust-001", "prod-001", 1)
        order_id = _cart().id

        result = services.cart.clear_cart("cust-001")

        assert result.ok
        assert _cart() is None
        assert current_domain.repository_for(OrderLine).find_lines_by_order(order_id) == []

    def test_clear_without_cart(self, services):
        assert services.cart.clear_cart("cust-001").kind == ErrorKind.NOT_FOUND

    def test_clear_refused_when_payments_exist(self, services):
        services.cart.add_item("cust-001", "prod-001", 1)
        order = _cart()
        current_domain.repository_for(Payment).add(Payment.register(order.id, "method-001", 10.0))

        result = services.cart.clear_cart("cust-001")

        assert result.kind == ErrorKind.CONFLICT
        assert _cart() is not None


class TestReads:
    def test_empty_cart_is_not_an_error(self, services):
        assert services.cart.get_current_cart("cust-001").value is None
        assert services.cart.get_cart_lines("cust-001").value == []

    def test_current_cart_includes_lines(self, services):
        services.cart.add_item("cust-001", "prod-001", 2)

        cart = services.cart.get_current_cart("cust-001").value

        assert cart["status"] == OrderStatus.UNCONFIRMED.value
        assert [line["product_id"] for line in cart["lines"]] == ["prod-001"]
        assert len(services.cart.get_cart_lines("cust-001").value) == 1
