"""Tests for Order state machine: valid transitions and invalid transition guards."""

import pytest
from ordering.errors import InvalidTransition
from ordering.order.events import OrderCancelled, OrderConfirmed, OrderStatusChanged
from ordering.order.order import Order, OrderChannel, OrderStatus


def _order_at_state(target_status):
    """Create a cart and advance it to the desired state."""
    order = Order.start_cart("cust-001")
    if target_status == OrderStatus.UNCONFIRMED:
        return order

    if target_status == OrderStatus.CANCELLED:
        order.cancel()
        order._events.clear()
        return order

    order.confirm("Calle 1")
    order._events.clear()
    if target_status == OrderStatus.PENDING:
        return order

    order.change_status(OrderStatus.DELIVERED)
    order._events.clear()
    return order


class TestNewCart:
    def test_cart_starts_unconfirmed_on_the_web_channel(self):
        order = Order.start_cart("cust-001")

        assert order.status == OrderStatus.UNCONFIRMED.value
        assert order.channel == OrderChannel.WEB.value
        assert order.total == 0.0
        assert order.placed_at is not None

    def test_in_person_order_records_staff_and_table(self):
        order = Order.open_in_person("emp-001", table_id="table-1")

        assert order.channel == OrderChannel.IN_PERSON.value
        assert order.created_by == "emp-001"
        assert order.table_id == "table-1"
        assert order.status == OrderStatus.UNCONFIRMED.value


class TestValidTransitions:
    def test_unconfirmed_to_pending_via_confirm(self):
        order = _order_at_state(OrderStatus.UNCONFIRMED)
        order.confirm("Calle 1")

        assert order.status == OrderStatus.PENDING.value
        assert order.delivery_address == "Calle 1"

    def test_confirm_raises_order_confirmed(self):
        order = _order_at_state(OrderStatus.UNCONFIRMED)
        order.confirm("Calle 1")

        assert len(order._events) == 1
        assert isinstance(order._events[0], OrderConfirmed)
        assert order._events[0].delivery_address == "Calle 1"

    def test_pending_to_delivered(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.change_status(OrderStatus.DELIVERED)

        assert order.status == OrderStatus.DELIVERED.value
        event = order._events[0]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "Pending"
        assert event.new_status == "Delivered"

    @pytest.mark.parametrize("start", [OrderStatus.UNCONFIRMED, OrderStatus.PENDING])
    def test_cancellable_states(self, start):
        order = _order_at_state(start)
        order.change_status(OrderStatus.CANCELLED)

        assert order.status == OrderStatus.CANCELLED.value
        assert isinstance(order._events[0], OrderCancelled)
        assert order._events[0].previous_status == start.value


class TestInvalidTransitions:
    def test_unconfirmed_cannot_jump_to_delivered(self):
        order = _order_at_state(OrderStatus.UNCONFIRMED)

        with pytest.raises(InvalidTransition) as exc:
            order.change_status(OrderStatus.DELIVERED)

        assert "Cannot transition from Unconfirmed to Delivered" in exc.value.message

    def test_pending_cannot_go_back_to_unconfirmed(self):
        order = _order_at_state(OrderStatus.PENDING)

        with pytest.raises(InvalidTransition):
            order.change_status(OrderStatus.UNCONFIRMED)

    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_delivered_is_terminal(self, target):
        order = _order_at_state(OrderStatus.DELIVERED)

        with pytest.raises(InvalidTransition) as exc:
            order.change_status(target)

        assert "already been delivered" in exc.value.message

    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_cancelled_is_terminal(self, target):
        order = _order_at_state(OrderStatus.CANCELLED)

        with pytest.raises(InvalidTransition) as exc:
            order.change_status(target)

        assert "has been cancelled" in exc.value.message

    def test_confirming_twice_is_rejected(self):
        order = _order_at_state(OrderStatus.PENDING)

        with pytest.raises(InvalidTransition):
            order.confirm()


class TestSettle:
    def test_settling_a_cart_moves_it_to_pending(self):
        order = _order_at_state(OrderStatus.UNCONFIRMED)
        order.settle(24.0, "Carrera 7")

        assert order.status == OrderStatus.PENDING.value
        assert order.total == 24.0
        assert order.delivery_address == "Carrera 7"

    def test_settling_a_confirmed_order_keeps_it_pending(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.settle(18.5)

        assert order.status == OrderStatus.PENDING.value
        assert order.total == 18.5
        assert order.delivery_address == "Calle 1"
        assert order._events == []

    def test_settling_a_delivered_order_is_rejected(self):
        order = _order_at_state(OrderStatus.DELIVERED)

        with pytest.raises(InvalidTransition):
            order.settle(10.0)


class TestOwnershipAndTotals:
    def test_belongs_to_compares_as_strings(self):
        order = Order.start_cart("cust-001")

        assert order.belongs_to("cust-001")
        assert not order.belongs_to("cust-002")

    def test_recalculate_total_sums_subtotals(self):
        from ordering.order.line import OrderLine

        order = Order.start_cart("cust-001")
        lines = [
            OrderLine.create(order.id, "prod-001", 2, 10.0),
            OrderLine.create(order.id, "prod-002", 1, 4.0),
        ]
        order.recalculate_total(lines)

        assert order.total == 24.0

    def test_recalculate_total_of_no_lines_is_zero(self):
        order = Order.start_cart("cust-001")
        order.total = 12.0
        order.recalculate_total([])

        assert order.total == 0.0
