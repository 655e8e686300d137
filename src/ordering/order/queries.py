"""Read-side lookups over orders for customers and staff."""

from protean.utils.globals import current_domain

from ordering.errors import Forbidden, InvalidInput, NotFound, returns_result
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderStatus
from ordering.payment.payment import Payment, PaymentMethod
from ordering.shared.paging import DEFAULT_PAGE_SIZE, Page, validate_paging
from ordering.shared.summaries import summarize_order, summarize_payment


def _status_filter(status):
    if not status:
        return None
    try:
        return OrderStatus(status).value
    except ValueError:
        raise InvalidInput(f"Invalid status '{status}'") from None


def _summaries(result: Page) -> Page:
    return Page(
        items=[summarize_order(order) for order in result.items],
        page=result.page,
        limit=result.limit,
        total=result.total,
    )


class OrderQueries:
    @returns_result
    def get_order_history(
        self,
        customer_id,
        page=1,
        limit=DEFAULT_PAGE_SIZE,
        status=None,
        date_from=None,
        date_to=None,
    ):
        """The customer's placed orders (carts excluded), newest first."""
        validate_paging(page, limit)
        status = _status_filter(status)
        if status == OrderStatus.UNCONFIRMED.value:
            return Page(page=page, limit=limit)

        result = current_domain.repository_for(Order).customer_history(
            customer_id, page, limit, status=status, date_from=date_from, date_to=date_to
        )
        return _summaries(result)

    @returns_result
    def get_orders_in_progress(self, customer_id):
        return [summarize_order(order) for order in current_domain.repository_for(Order).in_progress_for(customer_id)]

    @returns_result
    def list_all_orders(self, page=1, limit=DEFAULT_PAGE_SIZE, status=None):
        validate_paging(page, limit)
        return _summaries(current_domain.repository_for(Order).all_orders(page, limit, status=_status_filter(status)))

    @returns_result
    def get_customer_order_detail(self, order_id, customer_id):
        order = self._owned(order_id, customer_id)
        return self._detail(order)

    @returns_result
    def check_order_status(self, order_id, customer_id):
        order = self._owned(order_id, customer_id)
        return {
            "order_id": str(order.id),
            "status": order.status,
            "total": order.total,
            "placed_at": order.placed_at.isoformat() if order.placed_at else None,
        }

    @returns_result
    def get_order(self, order_id):
        order = current_domain.repository_for(Order).find_by_id(order_id)
        if order is None:
            raise NotFound("Order not found")
        return self._detail(order)

    def _owned(self, order_id, customer_id):
        order = current_domain.repository_for(Order).find_by_id(order_id)
        if order is None:
            raise NotFound("Order not found")
        if not order.belongs_to(customer_id):
            raise Forbidden("You are not allowed to view this order")
        return order

    def _detail(self, order) -> dict:
        lines = current_domain.repository_for(OrderLine).find_lines_by_order(order.id)
        detail = summarize_order(order, lines)

        payment = current_domain.repository_for(Payment).find_payment_by_order(order.id)
        if payment is None:
            detail["payment"] = None
        else:
            method = current_domain.repository_for(PaymentMethod).find_by_id(payment.payment_method_id)
            detail["payment"] = summarize_payment(payment, method)
        return detail
