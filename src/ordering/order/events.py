"""Domain events raised by the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderConfirmed:
    """A customer confirmed their cart; the order now awaits payment."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Float(required=True)
    delivery_address = String(max_length=500)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = "v1"

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = "v1"

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)
