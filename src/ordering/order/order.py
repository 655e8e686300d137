"""Order aggregate: a customer's cart, and later their placed order.

State Machine:
    Unconfirmed → Pending → Delivered
    Unconfirmed/Pending → Cancelled

An ``Unconfirmed`` order is the customer's cart; there is at most one per
customer. Lines live in their own aggregate (``OrderLine``) and are looked
up through ``OrderLineRepository``; the order only keeps the running total.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering
from ordering.errors import InvalidTransition
from ordering.order.events import OrderCancelled, OrderConfirmed, OrderStatusChanged
from ordering.shared.money import sum_money, to_money


class OrderStatus(Enum):
    UNCONFIRMED = "Unconfirmed"
    PENDING = "Pending"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderChannel(Enum):
    WEB = "Web"
    IN_PERSON = "InPerson"


_VALID_TRANSITIONS = {
    OrderStatus.UNCONFIRMED: {OrderStatus.PENDING, OrderStatus.CANCELLED},
    OrderStatus.PENDING: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

_TERMINAL_MESSAGES = {
    OrderStatus.DELIVERED: "Order has already been delivered and can no longer change status",
    OrderStatus.CANCELLED: "Order has been cancelled and can no longer change status",
}


@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    total = Float(default=0.0, min_value=0.0)
    channel = String(choices=OrderChannel, default=OrderChannel.WEB.value)
    status = String(choices=OrderStatus, default=OrderStatus.UNCONFIRMED.value)
    placed_at = DateTime(required=True)
    delivery_address = String(max_length=500)
    table_id = Identifier()
    created_by = Identifier()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def start_cart(cls, customer_id):
        """Open a new web cart for a customer."""
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            total=0.0,
            channel=OrderChannel.WEB.value,
            status=OrderStatus.UNCONFIRMED.value,
            placed_at=now,
            updated_at=now,
        )

    @classmethod
    def open_in_person(cls, staff_user_id, table_id=None):
        """Open an order entered by staff at the counter or a table."""
        now = datetime.now(UTC)
        return cls(
            customer_id=staff_user_id,
            created_by=staff_user_id,
            total=0.0,
            channel=OrderChannel.IN_PERSON.value,
            status=OrderStatus.UNCONFIRMED.value,
            placed_at=now,
            table_id=table_id,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATES

    def belongs_to(self, customer_id) -> bool:
        return str(self.customer_id) == str(customer_id)

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def recalculate_total(self, lines):
        """Reset the total to the sum of the given lines' subtotals."""
        self.total = sum_money(line.subtotal for line in lines)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def assert_can_transition(self, target_status):
        current = self.current_status
        if current in TERMINAL_STATES:
            raise InvalidTransition(_TERMINAL_MESSAGES[current])
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot transition from {current.value} to {target_status.value}")

    def change_status(self, target_status):
        """Move to ``target_status`` along the allowed transitions."""
        self.assert_can_transition(target_status)
        if target_status == OrderStatus.CANCELLED:
            self.cancel()
            return

        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target_status.value,
                changed_at=now,
            )
        )

    def confirm(self, delivery_address=None):
        """Customer confirmation of the cart: the order now waits for payment."""
        self.assert_can_transition(OrderStatus.PENDING)

        now = datetime.now(UTC)
        self.status = OrderStatus.PENDING.value
        self.placed_at = now
        self.updated_at = now
        if delivery_address:
            self.delivery_address = delivery_address

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                total=self.total,
                delivery_address=self.delivery_address,
                placed_at=now,
            )
        )

    def settle(self, total, delivery_address=None):
        """Record the outcome of a registered payment.

        A cart moves to ``Pending``; an order the customer already confirmed
        is ``Pending`` and only has its total and address refreshed.
        """
        awaiting_payment = self.current_status == OrderStatus.PENDING
        if not awaiting_payment:
            self.assert_can_transition(OrderStatus.PENDING)

        self.total = to_money(total)
        if delivery_address:
            self.delivery_address = delivery_address
        self.updated_at = datetime.now(UTC)

        if not awaiting_payment:
            self.change_status(OrderStatus.PENDING)

    def cancel(self):
        self.assert_can_transition(OrderStatus.CANCELLED)

        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous,
                cancelled_at=now,
            )
        )
