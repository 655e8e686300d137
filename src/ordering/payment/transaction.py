"""PaymentTransaction: atomic payment registration for an order.

Steps, strictly in order:
    1. Load the order; it must exist, belong to the caller and be payable
    2. Load the payment method
    3. Load the order lines; there must be at least one
    4. Reprice every line with the best current promotion
    5. Re-check live stock for every line
    6. Reserve (decrement) stock for every line
    7. Build the payment for the recomputed total
    8. Settle the order: total, ``Pending`` status, delivery address
    9. Generate the receipt and attach it to the payment
   10. Persist lines, payment and order in one unit of work

Nothing is persisted before step 10, so any failure leaves the order and
its payments exactly as they were. Stock reserved in step 6 lives in the
inventory service and is not restored when a later step fails.

An order is payable while it is ``Unconfirmed``, or ``Pending`` after the
customer confirmed it without paying. A registration is refused outright
while a payment or any other change to the same order is in flight.
"""

from pathlib import Path

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from ordering.errors import (
    Conflict,
    Forbidden,
    InternalFailure,
    InvalidInput,
    NotFound,
    OrderingError,
    Result,
    returns_result,
)
from ordering.gateways.port import InventoryPort, ReceiptGenerator, TablePort
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderStatus
from ordering.payment.payment import Payment, PaymentMethod
from ordering.pricing.calculator import PriceCalculator
from ordering.shared.availability import require_available
from ordering.shared.locking import KeyedLocks, order_key
from ordering.shared.summaries import summarize_order, summarize_payment

logger = structlog.get_logger(__name__)

RECEIPT_FAILURE_MESSAGE = "Payment registered but the receipt could not be generated; the payment was rolled back"
ORDER_BUSY_MESSAGE = "A payment or another change for this order is already in progress"


class PaymentTransaction:
    def __init__(
        self,
        inventory: InventoryPort,
        tables: TablePort,
        receipts: ReceiptGenerator,
        calculator: PriceCalculator,
        locks: KeyedLocks,
    ):
        self.inventory = inventory
        self.tables = tables
        self.receipts = receipts
        self.calculator = calculator
        self.locks = locks

    @returns_result
    def register_payment(self, order_id, customer_id, payment_method_id, delivery_address=None, token=None):
        with self.locks.try_hold(order_key(order_id), ORDER_BUSY_MESSAGE):
            return self._register(order_id, customer_id, payment_method_id, delivery_address, token)

    def _register(self, order_id, customer_id, payment_method_id, delivery_address, token):
        order_repo = current_domain.repository_for(Order)
        line_repo = current_domain.repository_for(OrderLine)
        payment_repo = current_domain.repository_for(Payment)

        order = order_repo.find_by_id(order_id)
        if order is None:
            raise NotFound("Order not found")
        if not order.belongs_to(customer_id):
            raise Forbidden("You are not allowed to pay for this order")
        self._ensure_payable(order, payment_repo)

        method = current_domain.repository_for(PaymentMethod).find_by_id(payment_method_id)
        if method is None:
            raise NotFound("Payment method not found")

        lines = line_repo.find_lines_by_order(order.id)
        if not lines:
            raise InvalidInput("The order has no products")

        total = self.calculator.reprice_lines(lines, token)

        for line in lines:
            require_available(self.inventory, line.product_id, line.quantity, token)

        self._reserve_stock(order, lines, token)

        payment = Payment.register(order.id, method.id, total)
        order.settle(total, delivery_address)

        receipt_path = self._generate_receipt(order, lines, token)
        payment.attach_receipt(receipt_path)

        try:
            with UnitOfWork():
                for line in lines:
                    line_repo.add(line)
                payment_repo.add(payment)
                order_repo.add(order)
        except Exception:
            Path(receipt_path).unlink(missing_ok=True)
            raise

        logger.info(
            "payment_registered",
            order_id=str(order.id),
            payment_id=str(payment.id),
            customer_id=str(customer_id),
            amount=payment.amount,
            receipt=receipt_path,
        )
        return Result.success(
            {
                "order": summarize_order(order, lines),
                "payment": summarize_payment(payment, method),
                "receipt_path": receipt_path,
            },
            message="Payment registered",
        )

    def _ensure_payable(self, order, payment_repo):
        status = order.current_status
        if status == OrderStatus.UNCONFIRMED:
            return
        if status == OrderStatus.PENDING and not payment_repo.has_payment_for_order(order.id):
            return
        raise Conflict(f"The order is not awaiting payment (status: {order.status})")

    def _reserve_stock(self, order, lines, token):
        reserved = []
        for line in lines:
            try:
                self.inventory.reduce_stock(line.product_id, line.quantity, token)
            except OrderingError as exc:
                # Earlier reservations stay in effect in the inventory service
                logger.error(
                    "stock_reservation_failed",
                    order_id=str(order.id),
                    product_id=str(line.product_id),
                    already_reserved=reserved,
                    error=exc.message,
                )
                raise
            reserved.append({"product_id": str(line.product_id), "quantity": line.quantity})

    def _generate_receipt(self, order, lines, token) -> str:
        table_name = self._table_name(order, token)
        try:
            return self.receipts.generate(order, lines, table_name)
        except (OrderingError, OSError) as exc:
            logger.error("payment_receipt_failed", order_id=str(order.id), error=str(exc))
            raise InternalFailure(RECEIPT_FAILURE_MESSAGE) from exc

    def _table_name(self, order, token) -> str | None:
        if not order.table_id:
            return None
        try:
            table = self.tables.get_table(order.table_id, token)
        except OrderingError as exc:
            logger.warning("receipt_table_lookup_failed", order_id=str(order.id), error=exc.message)
            return None
        return f"Table {table.number}" if table else None
