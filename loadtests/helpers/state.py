"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; there is no cross-user
sharing. State tracks entity IDs returned by the API so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class CartState:
    """Tracks state for a shopping cart lifecycle."""

    customer_id: str | None = None
    order_id: str | None = None
    line_ids: list[str] = field(default_factory=list)


@dataclass
class CheckoutState:
    """Tracks a customer's cart through confirmation and payment."""

    customer_id: str | None = None
    order_id: str | None = None
    payment_method_id: str | None = None
    payment_id: str | None = None
    current_status: str = "Unconfirmed"


@dataclass
class StaffState:
    """Tracks an in-person order entered by staff."""

    staff_id: str | None = None
    order_id: str | None = None
    line_ids: list[str] = field(default_factory=list)
