"""Query methods for payments and payment methods."""

from ordering.domain import ordering
from ordering.payment.payment import Payment, PaymentMethod
from ordering.shared.paging import fetch_all, fetch_page


@ordering.repository(part_of=Payment)
class PaymentRepository:
    def find_payment_by_order(self, order_id) -> Payment | None:
        return self._dao.query.filter(order_id=str(order_id)).all().first

    def has_payment_for_order(self, order_id) -> bool:
        return self.find_payment_by_order(order_id) is not None

    def find_by_id(self, payment_id) -> Payment | None:
        return self._dao.query.filter(id=str(payment_id)).all().first

    def uses_method(self, method_id) -> bool:
        return self._dao.query.filter(payment_method_id=str(method_id)).all().first is not None

    def history(self, page, limit, date_from=None, date_to=None, method_id=None, order_ids=None):
        queryset = self._dao.query
        if date_from:
            queryset = queryset.filter(paid_at__gte=date_from)
        if date_to:
            queryset = queryset.filter(paid_at__lte=date_to)
        if method_id:
            queryset = queryset.filter(payment_method_id=str(method_id))
        if order_ids is not None:
            queryset = queryset.filter(order_id__in=sorted(order_ids))
        return fetch_page(queryset.order_by("-paid_at"), page, limit)

    def delete_payment(self, payment: Payment) -> None:
        self._dao.delete(payment)


@ordering.repository(part_of=PaymentMethod)
class PaymentMethodRepository:
    def find_by_id(self, method_id) -> PaymentMethod | None:
        return self._dao.query.filter(id=str(method_id)).all().first

    def find_by_name(self, name) -> PaymentMethod | None:
        return self._dao.query.filter(name=name.strip()).all().first

    def all_methods(self) -> list[PaymentMethod]:
        return fetch_all(self._dao.query.order_by("name"))

    def delete_method(self, method: PaymentMethod) -> None:
        self._dao.delete(method)
