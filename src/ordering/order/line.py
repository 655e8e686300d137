"""OrderLine aggregate: one product, quantity and price on an order."""

from protean.fields import Float, Identifier, Integer

from ordering.domain import ordering
from ordering.shared.money import line_subtotal, to_money


@ordering.aggregate
class OrderLine:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)

    @classmethod
    def create(cls, order_id, product_id, quantity, unit_price):
        return cls(
            order_id=str(order_id),
            product_id=str(product_id),
            quantity=quantity,
            unit_price=to_money(unit_price),
            subtotal=line_subtotal(quantity, unit_price),
        )

    def change_quantity(self, quantity, unit_price=None):
        """Set a new quantity, optionally at a refreshed unit price."""
        if unit_price is not None:
            self.unit_price = to_money(unit_price)
        self.quantity = quantity
        self.subtotal = line_subtotal(quantity, self.unit_price)

    def reprice(self, unit_price):
        self.change_quantity(self.quantity, unit_price)
