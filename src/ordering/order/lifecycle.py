"""OrderLifecycle: confirmation, staff-entered orders and status changes.

State Machine:
    Unconfirmed → Pending (confirmation, or a registered payment)
    Pending → Delivered
    Unconfirmed/Pending → Cancelled

Customer confirmation revalidates stock and reprices every line with the
best current promotion before moving the cart to ``Pending``. Staff can
create in-person orders (optionally for a table), add or remove lines,
advance the status, and delete orders that were never paid.
"""

from collections import OrderedDict

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from ordering.errors import Conflict, Forbidden, InvalidInput, NotFound, OrderingError, Result, returns_result
from ordering.gateways.port import ClientPort, EmailPort, InventoryPort, ReceiptGenerator, TablePort, TableStatus
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderStatus
from ordering.payment.payment import Payment
from ordering.pricing.calculator import PriceCalculator
from ordering.shared.availability import require_available
from ordering.shared.locking import KeyedLocks, customer_key, order_key
from ordering.shared.summaries import summarize_line, summarize_order

logger = structlog.get_logger(__name__)

PAYMENT_PENDING_LABEL = "Pendiente de pago"


def _parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise InvalidInput(f"Invalid status '{value}'. Allowed values: {allowed}") from None


def _merge_requested_lines(requested) -> "OrderedDict[str, int]":
    """Collapse repeated products of a staff order into one quantity each."""
    merged: OrderedDict[str, int] = OrderedDict()
    for item in requested:
        quantity = item.get("quantity")
        if quantity is None or quantity <= 0:
            raise InvalidInput("Quantity must be greater than zero")
        product_id = str(item["product_id"])
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


class OrderLifecycle:
    def __init__(
        self,
        inventory: InventoryPort,
        tables: TablePort,
        clients: ClientPort,
        email: EmailPort,
        receipts: ReceiptGenerator,
        calculator: PriceCalculator,
        locks: KeyedLocks,
    ):
        self.inventory = inventory
        self.tables = tables
        self.clients = clients
        self.email = email
        self.receipts = receipts
        self.calculator = calculator
        self.locks = locks

    # -------------------------------------------------------------------
    # Customer confirmation
    # -------------------------------------------------------------------
    @returns_result
    def confirm_order(self, customer_id, delivery_address=None, token=None):
        """Confirm the customer's cart; the order then waits for payment."""
        client = self.clients.get_client(customer_id, token)
        if client is None:
            raise Forbidden("The user is not registered as a client")

        with self.locks.hold(customer_key(customer_id)):
            order_repo = current_domain.repository_for(Order)
            line_repo = current_domain.repository_for(OrderLine)

            order = order_repo.find_cart(customer_id)
            if order is None:
                raise InvalidInput("There are no products in the cart to order")

            with self.locks.hold(order_key(order.id)):
                # Reload under the order lock
                order = order_repo.find_by_id(order.id)
                if order is None or order.current_status != OrderStatus.UNCONFIRMED:
                    raise Conflict("The cart changed while it was being confirmed")
                lines = line_repo.find_lines_by_order(order.id)
                if not lines:
                    raise InvalidInput("There are no products in the cart to order")

                for line in lines:
                    require_available(self.inventory, line.product_id, line.quantity, token)

                self.calculator.reprice_lines(lines, token)
                order.recalculate_total(lines)
                order.confirm(delivery_address or client.address or "")

                with UnitOfWork():
                    order_repo.add(order)
                    for line in lines:
                        line_repo.add(line)

        logger.info("order_confirmed", order_id=str(order.id), customer_id=str(customer_id), total=order.total)
        self._send_confirmation(client, order, lines, token)

        return Result.success(
            summarize_order(order),
            message="Order confirmed. You can now proceed with the payment.",
        )

    def _send_confirmation(self, client, order, lines, token):
        payload = {
            "email": client.email,
            "nombreCliente": client.name,
            "numeroPedido": str(order.id),
            "productos": [
                {
                    "idProducto": str(line.product_id),
                    "cantidad": line.quantity,
                    "precioUnitario": line.unit_price,
                    "subtotal": line.subtotal,
                }
                for line in lines
            ],
            "total": order.total,
            "estado": order.status,
            "direccionEntrega": order.delivery_address,
            "metodoPago": PAYMENT_PENDING_LABEL,
        }
        try:
            self.email.send_order_confirmation(payload, token)
        except OrderingError as exc:
            logger.warning("confirmation_email_failed", order_id=str(order.id), error=exc.message)

    # -------------------------------------------------------------------
    # Staff operations
    # -------------------------------------------------------------------
    @returns_result
    def create_customer_order(self, staff_user_id, requested_lines, table_id=None, token=None):
        """Register an in-person order entered by staff.

        Every line and the table are validated before anything is written.
        Receipt and table-status failures after the order is stored are
        reported as a warning; the order stays created.
        """
        if not requested_lines:
            raise InvalidInput("Select at least one product")

        quantities = _merge_requested_lines(requested_lines)
        products = {
            product_id: require_available(self.inventory, product_id, quantity, token)
            for product_id, quantity in quantities.items()
        }

        table_name = None
        if table_id:
            table = self.tables.get_table(table_id, token)
            if table is None:
                raise NotFound(f"Table {table_id} does not exist")
            if not table.is_available:
                raise Conflict(f"Table {table.number} is not available. Current status: {table.status}")
            table_name = f"Table {table.number}"

        order = Order.open_in_person(staff_user_id, table_id=table_id)
        lines = [
            OrderLine.create(order.id, product_id, quantity, products[product_id].price)
            for product_id, quantity in quantities.items()
        ]
        order.recalculate_total(lines)

        line_repo = current_domain.repository_for(OrderLine)
        with UnitOfWork():
            current_domain.repository_for(Order).add(order)
            for line in lines:
                line_repo.add(line)

        logger.info(
            "in_person_order_created",
            order_id=str(order.id),
            staff_user_id=str(staff_user_id),
            table_id=str(table_id) if table_id else None,
            total=order.total,
        )

        warnings = []
        receipt_path = None
        try:
            receipt_path = self.receipts.generate(order, lines, table_name)
        except (OrderingError, OSError) as exc:
            logger.warning("in_person_receipt_failed", order_id=str(order.id), error=str(exc))
            warnings.append("the receipt could not be generated")

        if table_id:
            try:
                self.tables.update_table_status(table_id, TableStatus.OCCUPIED, token)
            except OrderingError as exc:
                logger.warning("table_status_update_failed", order_id=str(order.id), table_id=str(table_id), error=exc.message)
                warnings.append("the table could not be marked as occupied")

        warning = f"Order created, but {' and '.join(warnings)}" if warnings else None
        return Result.success(
            {"order": summarize_order(order, lines), "receipt_path": receipt_path},
            message="Order registered",
            warning=warning,
        )

    @returns_result
    def add_line_to_existing_order(self, order_id, product_id, quantity, token=None):
        if quantity is None or quantity <= 0:
            raise InvalidInput("Quantity must be greater than zero")

        with self.locks.hold(order_key(order_id)):
            order_repo = current_domain.repository_for(Order)
            line_repo = current_domain.repository_for(OrderLine)

            order = order_repo.find_by_id(order_id)
            if order is None:
                raise NotFound("Order not found")
            if order.current_status == OrderStatus.CANCELLED:
                raise Conflict("Products cannot be added to a cancelled order")

            lines = line_repo.find_lines_by_order(order.id)
            line = next((ln for ln in lines if str(ln.product_id) == str(product_id)), None)
            cumulative = quantity + (line.quantity if line else 0)
            product = require_available(self.inventory, product_id, cumulative, token)

            if line:
                line.change_quantity(cumulative, product.price)
            else:
                line = OrderLine.create(order.id, product_id, quantity, product.price)
                lines.append(line)
            order.recalculate_total(lines)

            with UnitOfWork():
                order_repo.add(order)
                line_repo.add(line)

        logger.info("order_line_added", order_id=str(order.id), product_id=str(product_id), quantity=quantity)
        return Result.success(
            {"order": summarize_order(order), "line": summarize_line(line)},
            message="Product added to order",
        )

    @returns_result
    def remove_line_from_order(self, line_id):
        line_repo = current_domain.repository_for(OrderLine)
        line = line_repo.find_by_id(line_id)
        if line is None:
            raise NotFound("Line not found in the order")

        with self.locks.hold(order_key(line.order_id)):
            order_repo = current_domain.repository_for(Order)
            order = order_repo.find_by_id(line.order_id)
            if order is None:
                raise NotFound("Order not found")
            if order.is_terminal:
                raise Conflict(f"Products cannot be removed from a {order.status.lower()} order")

            remaining = [ln for ln in line_repo.find_lines_by_order(order.id) if str(ln.id) != str(line.id)]
            order.recalculate_total(remaining)

            with UnitOfWork():
                line_repo.delete_line(line)
                order_repo.add(order)

        logger.info("order_line_removed", order_id=str(order.id), line_id=str(line_id))
        return Result.success(summarize_order(order, remaining), message="Product removed from order")

    @returns_result
    def update_order_status(self, order_id, new_status):
        """Advance an order along the state machine.

        Entering ``Pending`` additionally requires a registered payment.
        """
        target = _parse_status(new_status)

        with self.locks.hold(order_key(order_id)):
            order_repo = current_domain.repository_for(Order)
            order = order_repo.find_by_id(order_id)
            if order is None:
                raise NotFound("Order not found")

            order.assert_can_transition(target)
            if target == OrderStatus.PENDING and not current_domain.repository_for(Payment).has_payment_for_order(
                order.id
            ):
                raise Conflict("The order cannot move to Pending without a registered payment")

            previous = order.status
            order.change_status(target)
            with UnitOfWork():
                order_repo.add(order)

        logger.info("order_status_changed", order_id=str(order.id), previous_status=previous, new_status=order.status)
        return Result.success(summarize_order(order), message=f"Order status updated to {order.status}")

    # -------------------------------------------------------------------
    # Customer cancellation and staff deletion
    # -------------------------------------------------------------------
    @returns_result
    def cancel_order(self, order_id, customer_id):
        with self.locks.hold(order_key(order_id)):
            order_repo = current_domain.repository_for(Order)
            order = order_repo.find_by_id(order_id)
            if order is None:
                raise NotFound("Order not found")
            if not order.belongs_to(customer_id):
                raise Forbidden("You are not allowed to cancel this order")
            if order.current_status not in (OrderStatus.UNCONFIRMED, OrderStatus.PENDING):
                raise Conflict("Only unconfirmed or pending orders can be cancelled")

            order.cancel()
            with UnitOfWork():
                order_repo.add(order)

        logger.info("order_cancelled", order_id=str(order.id), customer_id=str(customer_id))
        return Result.success(summarize_order(order), message="Order cancelled")

    @returns_result
    def delete_order(self, order_id):
        with self.locks.hold(order_key(order_id)):
            order_repo = current_domain.repository_for(Order)
            order = order_repo.find_by_id(order_id)
            if order is None:
                raise NotFound("Order not found")
            if order.current_status == OrderStatus.DELIVERED:
                raise Conflict("Delivered orders cannot be deleted")
            if current_domain.repository_for(Payment).has_payment_for_order(order.id):
                raise Conflict("Orders with registered payments cannot be deleted; cancel the order instead")

            with UnitOfWork():
                current_domain.repository_for(OrderLine).delete_for_order(order.id)
                order_repo.delete_order(order)

        logger.info("order_deleted", order_id=str(order_id))
        return Result.success(None, message="Order deleted")
