"""Query methods for orders and order lines."""

from ordering.domain import ordering
from ordering.order.line import OrderLine
from ordering.order.order import Order, OrderChannel, OrderStatus
from ordering.shared.paging import fetch_all, fetch_page


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_cart(self, customer_id) -> Order | None:
        """The customer's single ``Unconfirmed`` web order, if any."""
        return (
            self._dao.query.filter(
                customer_id=str(customer_id),
                status=OrderStatus.UNCONFIRMED.value,
                channel=OrderChannel.WEB.value,
            )
            .all()
            .first
        )

    def find_by_id(self, order_id) -> Order | None:
        return self._dao.query.filter(id=str(order_id)).all().first

    def customer_history(self, customer_id, page, limit, status=None, date_from=None, date_to=None):
        queryset = self._dao.query.filter(customer_id=str(customer_id)).exclude(
            status=OrderStatus.UNCONFIRMED.value
        )
        if status:
            queryset = queryset.filter(status=status)
        if date_from:
            queryset = queryset.filter(placed_at__gte=date_from)
        if date_to:
            queryset = queryset.filter(placed_at__lte=date_to)
        return fetch_page(queryset.order_by("-placed_at"), page, limit)

    def in_progress_for(self, customer_id) -> list[Order]:
        queryset = self._dao.query.filter(customer_id=str(customer_id), status=OrderStatus.PENDING.value)
        return fetch_all(queryset.order_by("-placed_at"))

    def unconfirmed(self, page, limit):
        queryset = self._dao.query.filter(status=OrderStatus.UNCONFIRMED.value)
        return fetch_page(queryset.order_by("-placed_at"), page, limit)

    def all_orders(self, page, limit, status=None):
        queryset = self._dao.query
        if status:
            queryset = queryset.filter(status=status)
        return fetch_page(queryset.order_by("-placed_at"), page, limit)

    def ids_with_status(self, statuses) -> set[str]:
        queryset = self._dao.query.filter(status__in=list(statuses))
        return {str(order.id) for order in fetch_all(queryset)}

    def delete_order(self, order: Order) -> None:
        self._dao.delete(order)


@ordering.repository(part_of=OrderLine)
class OrderLineRepository:
    def find_lines_by_order(self, order_id) -> list[OrderLine]:
        return fetch_all(self._dao.query.filter(order_id=str(order_id)))

    def find_by_id(self, line_id) -> OrderLine | None:
        return self._dao.query.filter(id=str(line_id)).all().first

    def delete_line(self, line: OrderLine) -> None:
        self._dao.delete(line)

    def delete_for_order(self, order_id) -> None:
        for line in self.find_lines_by_order(order_id):
            self._dao.delete(line)
