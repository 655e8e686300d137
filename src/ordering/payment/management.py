"""Payment methods, payment history and receipt lookups."""

from pathlib import Path

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from ordering.errors import Conflict, InvalidInput, NotFound, Result, returns_result
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderStatus
from ordering.payment.payment import Payment, PaymentMethod
from ordering.shared.paging import DEFAULT_PAGE_SIZE, Page, validate_paging
from ordering.shared.summaries import summarize_method, summarize_order, summarize_payment

logger = structlog.get_logger(__name__)


def _clean_name(name) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("The payment method name is required")
    return name


class PaymentManagement:
    # -------------------------------------------------------------------
    # Payment methods
    # -------------------------------------------------------------------
    @returns_result
    def list_payment_methods(self):
        return [summarize_method(m) for m in current_domain.repository_for(PaymentMethod).all_methods()]

    @returns_result
    def get_payment_method(self, method_id):
        method = current_domain.repository_for(PaymentMethod).find_by_id(method_id)
        if method is None:
            raise NotFound("Payment method not found")
        return summarize_method(method)

    @returns_result
    def create_payment_method(self, name):
        name = _clean_name(name)
        repo = current_domain.repository_for(PaymentMethod)
        if repo.find_by_name(name) is not None:
            raise Conflict(f"A payment method named '{name}' already exists")

        method = PaymentMethod(name=name)
        with UnitOfWork():
            repo.add(method)

        logger.info("payment_method_created", method_id=str(method.id), name=name)
        return Result.success(summarize_method(method), message="Payment method created")

    @returns_result
    def update_payment_method(self, method_id, name):
        name = _clean_name(name)
        repo = current_domain.repository_for(PaymentMethod)
        method = repo.find_by_id(method_id)
        if method is None:
            raise NotFound("Payment method not found")

        holder = repo.find_by_name(name)
        if holder is not None and str(holder.id) != str(method.id):
            raise Conflict(f"A payment method named '{name}' already exists")

        method.rename(name)
        with UnitOfWork():
            repo.add(method)

        logger.info("payment_method_updated", method_id=str(method.id), name=name)
        return Result.success(summarize_method(method), message="Payment method updated")

    @returns_result
    def delete_payment_method(self, method_id):
        repo = current_domain.repository_for(PaymentMethod)
        method = repo.find_by_id(method_id)
        if method is None:
            raise NotFound("Payment method not found")
        if current_domain.repository_for(Payment).uses_method(method.id):
            raise Conflict("The payment method has registered payments and cannot be deleted")

        repo.delete_method(method)

        logger.info("payment_method_deleted", method_id=str(method_id))
        return Result.success(None, message="Payment method deleted")

    # -------------------------------------------------------------------
    # Orders awaiting payment
    # -------------------------------------------------------------------
    @returns_result
    def list_pending_payment_orders(self, page=1, limit=DEFAULT_PAGE_SIZE):
        """Unconfirmed orders, newest first."""
        validate_paging(page, limit)
        result = current_domain.repository_for(Order).unconfirmed(page, limit)
        return Page(
            items=[summarize_order(order) for order in result.items],
            page=result.page,
            limit=result.limit,
            total=result.total,
        )

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    @returns_result
    def get_payment_history(
        self,
        page=1,
        limit=DEFAULT_PAGE_SIZE,
        date_from=None,
        date_to=None,
        method_id=None,
        order_status=None,
    ):
        validate_paging(page, limit)
        if date_from and date_to and date_from > date_to:
            raise InvalidInput("date_from must not be later than date_to")

        order_ids = None
        if order_status:
            try:
                status = OrderStatus(order_status)
            except ValueError:
                raise InvalidInput(f"Invalid order status '{order_status}'") from None
            order_ids = current_domain.repository_for(Order).ids_with_status([status.value])
            if not order_ids:
                return Page(page=page, limit=limit)

        result = current_domain.repository_for(Payment).history(
            page,
            limit,
            date_from=date_from,
            date_to=date_to,
            method_id=method_id,
            order_ids=order_ids,
        )
        return self._payment_page(result)

    @returns_result
    def get_all_payments(self, page=1, limit=DEFAULT_PAGE_SIZE):
        validate_paging(page, limit)
        return self._payment_page(current_domain.repository_for(Payment).history(page, limit))

    @returns_result
    def get_payment_detail(self, payment_id):
        payment = current_domain.repository_for(Payment).find_by_id(payment_id)
        if payment is None:
            raise NotFound("Payment not found")

        order = current_domain.repository_for(Order).find_by_id(payment.order_id)
        method = current_domain.repository_for(PaymentMethod).find_by_id(payment.payment_method_id)
        detail = summarize_payment(payment, method)
        if order is not None:
            lines = current_domain.repository_for(OrderLine).find_lines_by_order(order.id)
            detail["order"] = summarize_order(order, lines)
        return detail

    @returns_result
    def get_receipt_path(self, payment_id):
        payment = current_domain.repository_for(Payment).find_by_id(payment_id)
        if payment is None:
            raise NotFound("Payment not found")
        if not payment.receipt_url:
            raise NotFound("The payment has no receipt")
        if not Path(payment.receipt_url).is_file():
            raise NotFound("The receipt file is no longer available")
        return payment.receipt_url

    def _payment_page(self, result: Page) -> Page:
        methods = {str(m.id): m for m in current_domain.repository_for(PaymentMethod).all_methods()}
        return Page(
            items=[summarize_payment(p, methods.get(str(p.payment_method_id))) for p in result.items],
            page=result.page,
            limit=result.limit,
            total=result.total,
        )
