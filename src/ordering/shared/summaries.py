"""Plain-dict views of orders, lines and payments returned by the services."""


def _iso(value):
    return value.isoformat() if value else None


def summarize_line(line) -> dict:
    return {
        "line_id": str(line.id),
        "order_id": str(line.order_id),
        "product_id": str(line.product_id),
        "quantity": line.quantity,
        "unit_price": line.unit_price,
        "subtotal": line.subtotal,
    }


def summarize_order(order, lines=None) -> dict:
    summary = {
        "order_id": str(order.id),
        "customer_id": str(order.customer_id),
        "status": order.status,
        "channel": order.channel,
        "total": order.total,
        "placed_at": _iso(order.placed_at),
        "delivery_address": order.delivery_address,
        "table_id": str(order.table_id) if order.table_id else None,
    }
    if lines is not None:
        summary["lines"] = [summarize_line(line) for line in lines]
    return summary


def summarize_payment(payment, method=None) -> dict:
    summary = {
        "payment_id": str(payment.id),
        "order_id": str(payment.order_id),
        "payment_method_id": str(payment.payment_method_id),
        "amount": payment.amount,
        "paid_at": _iso(payment.paid_at),
        "receipt_url": payment.receipt_url or None,
    }
    if method is not None:
        summary["payment_method"] = method.name
    return summary


def summarize_method(method) -> dict:
    return {"method_id": str(method.id), "name": method.name}
