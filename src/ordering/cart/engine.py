"""CartEngine: the customer's single unconfirmed order.

A cart is an ``Unconfirmed`` web order. Adding a product finds or opens the
customer's cart, merges the quantity into an existing line for the same
product at the product's current inventory price, and resets the order
total to the sum of its lines.
"""

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from ordering.errors import Conflict, Forbidden, InvalidInput, NotFound, Result, returns_result
from ordering.gateways.port import InventoryPort
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderStatus
from ordering.payment.payment import Payment
from ordering.shared.locking import KeyedLocks, customer_key, order_key
from ordering.shared.summaries import summarize_line, summarize_order

logger = structlog.get_logger(__name__)


class CartEngine:
    def __init__(self, inventory: InventoryPort, locks: KeyedLocks):
        self.inventory = inventory
        self.locks = locks

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    @returns_result
    def add_item(self, customer_id, product_id, quantity, token=None):
        """Add ``quantity`` of a product to the customer's cart, opening one if needed."""
        if quantity is None or quantity <= 0:
            raise InvalidInput("Quantity must be greater than zero")

        product = self.inventory.get_product(product_id, token)
        if product is None or not product.active:
            raise NotFound(f"Product {product_id} is not available")

        with self.locks.hold(customer_key(customer_id)):
            order_repo = current_domain.repository_for(Order)
            line_repo = current_domain.repository_for(OrderLine)

            order = order_repo.find_cart(customer_id) or Order.start_cart(customer_id)
            with self.locks.hold(order_key(order.id)):
                lines = line_repo.find_lines_by_order(order.id)
                line = next((ln for ln in lines if str(ln.product_id) == str(product_id)), None)
                requested = quantity + (line.quantity if line else 0)
                if not product.can_supply(requested):
                    raise Conflict(f"Product {product.name or product_id} is not available in the requested quantity")

                if line:
                    line.change_quantity(requested, product.price)
                else:
                    line = OrderLine.create(order.id, product_id, quantity, product.price)
                    lines.append(line)

                order.recalculate_total(lines)

                with UnitOfWork():
                    order_repo.add(order)
                    line_repo.add(line)

        logger.info(
            "cart_item_added",
            customer_id=str(customer_id),
            order_id=str(order.id),
            product_id=str(product_id),
            quantity=quantity,
        )
        return Result.success(
            {"order": summarize_order(order), "line": summarize_line(line), "line_count": len(lines)},
            message="Product added to cart",
        )

    @returns_result
    def update_line_quantity(self, line_id, new_quantity, customer_id):
        """Set a cart line's quantity; zero or less removes the line."""
        line = self._find_line(line_id)
        with self.locks.hold(order_key(line.order_id)):
            order, line = self._owned_cart_line(line_id, customer_id)
            if new_quantity <= 0:
                return self._remove(order, line)

            line_repo = current_domain.repository_for(OrderLine)
            line.change_quantity(new_quantity)
            lines = [line if str(ln.id) == str(line.id) else ln for ln in line_repo.find_lines_by_order(order.id)]
            order.recalculate_total(lines)

            with UnitOfWork():
                current_domain.repository_for(Order).add(order)
                line_repo.add(line)

        logger.info("cart_line_updated", order_id=str(order.id), line_id=str(line.id), quantity=new_quantity)
        return Result.success(
            {"order": summarize_order(order), "line": summarize_line(line)},
            message="Quantity updated",
        )

    @returns_result
    def remove_line(self, line_id, customer_id):
        line = self._find_line(line_id)
        with self.locks.hold(order_key(line.order_id)):
            order, line = self._owned_cart_line(line_id, customer_id)
            return self._remove(order, line)

    @returns_result
    def clear_cart(self, customer_id):
        """Discard the customer's cart and all of its lines."""
        with self.locks.hold(customer_key(customer_id)):
            order_repo = current_domain.repository_for(Order)
            order = order_repo.find_cart(customer_id)
            if order is None:
                raise NotFound("There is no active cart")

            with self.locks.hold(order_key(order.id)):
                if current_domain.repository_for(Payment).has_payment_for_order(order.id):
                    raise Conflict("The cart has payments registered and cannot be cleared")

                line_repo = current_domain.repository_for(OrderLine)
                with UnitOfWork():
                    line_repo.delete_for_order(order.id)
                    order_repo.delete_order(order)

        logger.info("cart_cleared", customer_id=str(customer_id), order_id=str(order.id))
        return Result.success(None, message="Cart cleared")

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @returns_result
    def get_current_cart(self, customer_id):
        order = current_domain.repository_for(Order).find_cart(customer_id)
        if order is None:
            return None
        lines = current_domain.repository_for(OrderLine).find_lines_by_order(order.id)
        return summarize_order(order, lines)

    @returns_result
    def get_cart_lines(self, customer_id):
        order = current_domain.repository_for(Order).find_cart(customer_id)
        if order is None:
            return []
        return [summarize_line(line) for line in current_domain.repository_for(OrderLine).find_lines_by_order(order.id)]

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _find_line(self, line_id):
        line = current_domain.repository_for(OrderLine).find_by_id(line_id)
        if line is None:
            raise NotFound("Line not found in the order")
        return line

    def _owned_cart_line(self, line_id, customer_id):
        """Reload a line and its order under the order's lock and check they can be edited."""
        line = self._find_line(line_id)
        order = current_domain.repository_for(Order).find_by_id(line.order_id)
        if order is None:
            raise NotFound("Order not found")
        if not order.belongs_to(customer_id):
            raise Forbidden("You are not allowed to modify this order")
        if order.current_status != OrderStatus.UNCONFIRMED:
            raise Conflict("Only unconfirmed orders can be modified")
        return order, line

    def _remove(self, order, line):
        line_repo = current_domain.repository_for(OrderLine)
        remaining = [ln for ln in line_repo.find_lines_by_order(order.id) if str(ln.id) != str(line.id)]
        order.recalculate_total(remaining)

        with UnitOfWork():
            line_repo.delete_line(line)
            current_domain.repository_for(Order).add(order)

        logger.info("cart_line_removed", order_id=str(order.id), line_id=str(line.id))
        return Result.success(
            {"order": summarize_order(order), "line_count": len(remaining)},
            message="Product removed from cart",
        )
