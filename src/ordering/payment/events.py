"""Domain events raised by the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier

from ordering.domain import ordering


@ordering.event(part_of="Payment")
class PaymentRegistered:
    """Money was collected for an order and the order moved to Pending."""

    __version__ = "v1"

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    payment_method_id = Identifier(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)
