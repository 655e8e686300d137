"""Payment and PaymentMethod aggregates.

A Payment is created once per order, inside the payment-registration
transaction, and is immutable afterwards except for the receipt reference.
PaymentMethod names are unique; a method referenced by any payment cannot
be deleted.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering
from ordering.payment.events import PaymentRegistered
from ordering.shared.money import to_money


@ordering.aggregate
class PaymentMethod:
    name = String(required=True, max_length=100)

    def rename(self, name):
        self.name = name.strip()


@ordering.aggregate
class Payment:
    order_id = Identifier(required=True)
    payment_method_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    paid_at = DateTime(required=True)
    receipt_url = String(max_length=500, default="")

    @classmethod
    def register(cls, order_id, payment_method_id, amount):
        payment = cls(
            order_id=str(order_id),
            payment_method_id=str(payment_method_id),
            amount=to_money(amount),
            paid_at=datetime.now(UTC),
            receipt_url="",
        )
        payment.raise_(
            PaymentRegistered(
                payment_id=str(payment.id),
                order_id=str(order_id),
                payment_method_id=str(payment_method_id),
                amount=payment.amount,
                paid_at=payment.paid_at,
            )
        )
        return payment

    def attach_receipt(self, receipt_url):
        self.receipt_url = receipt_url
