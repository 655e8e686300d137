import pytest
from ordering.order.line import OrderLine
from protean.exceptions import ValidationError


class TestOrderLine:
    def test_create_computes_subtotal(self):
        line = OrderLine.create("ord-001", "prod-001", 3, 3.35)

        assert line.unit_price == 3.35
        assert line.subtotal == 10.05

    def test_change_quantity_keeps_price(self):
        line = OrderLine.create("ord-001", "prod-001", 1, 10.0)
        line.change_quantity(4)

        assert line.quantity == 4
        assert line.unit_price == 10.0
        assert line.subtotal == 40.0

    def test_change_quantity_at_new_price(self):
        line = OrderLine.create("ord-001", "prod-001", 1, 10.0)
        line.change_quantity(2, 12.5)

        assert line.unit_price == 12.5
        assert line.subtotal == 25.0

    def test_reprice_recomputes_subtotal(self):
        line = OrderLine.create("ord-001", "prod-001", 2, 10.0)
        line.reprice(8.0)

        assert line.unit_price == 8.0
        assert line.subtotal == 16.0

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError) as exc:
            OrderLine.create("ord-001", "prod-001", 0, 10.0)

        assert "quantity" in exc.value.messages
