"""FastAPI routes for the ordering service: carts, orders and payments.

Handlers are plain functions: the services block on sibling-service calls
and keyed locks, so FastAPI runs each request in its worker thread pool.
"""

from datetime import UTC, datetime
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from ordering.api.auth import Principal, current_principal, staff_principal
from ordering.api.responses import respond
from ordering.api.schemas import (
    AddCartItemRequest,
    AddOrderLineRequest,
    ConfirmOrderRequest,
    CreateCustomerOrderRequest,
    PaymentMethodRequest,
    RegisterPaymentRequest,
    UpdateLineQuantityRequest,
    UpdateOrderStatusRequest,
)
from ordering.services import OrderingServices


def get_services(request: Request) -> OrderingServices:
    return request.app.state.services


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


# Cart ----------------------------------------------------------------------
@order_router.post("/cart/product", status_code=201)
def add_to_cart(
    body: AddCartItemRequest,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.cart.add_item(principal.user_id, body.product_id, body.quantity, principal.token)
    return respond(result, status_code=201)


@order_router.get("/cart")
def get_cart(
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.cart.get_current_cart(principal.user_id)
    return respond(result, message="Current cart" if result.value else "The cart is empty")


@order_router.get("/cart/products")
def get_cart_products(
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.cart.get_cart_lines(principal.user_id))


@order_router.patch("/cart/product/{line_id}")
def update_cart_line(
    line_id: str,
    body: UpdateLineQuantityRequest,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.cart.update_line_quantity(line_id, body.quantity, principal.user_id))


@order_router.delete("/cart/product/{line_id}")
def remove_cart_line(
    line_id: str,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.cart.remove_line(line_id, principal.user_id))


@order_router.delete("/cart")
def clear_cart(
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.cart.clear_cart(principal.user_id))


# Customer order flow ---------------------------------------------------------
@order_router.post("/confirm")
def confirm_order(
    body: ConfirmOrderRequest,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.lifecycle.confirm_order(principal.user_id, body.delivery_address, principal.token))


@order_router.get("/history")
def order_history(
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.queries.get_order_history(
        principal.user_id,
        page=page,
        limit=limit,
        status=status,
        date_from=_aware(date_from),
        date_to=_aware(date_to),
    )
    return respond(result)


@order_router.get("/in-progress")
def orders_in_progress(
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.queries.get_orders_in_progress(principal.user_id))


@order_router.get("/all")
def list_all_orders(
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.queries.list_all_orders(page=page, limit=limit, status=status))


# Staff operations -------------------------------------------------------------
@order_router.post("/create-customer-order", status_code=201)
def create_customer_order(
    body: CreateCustomerOrderRequest,
    principal: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.lifecycle.create_customer_order(
        principal.user_id,
        [line.model_dump() for line in body.lines],
        table_id=body.table_id,
        token=principal.token,
    )
    return respond(result, status_code=201)


@order_router.get("/status/{order_id}")
def check_order_status(
    order_id: str,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.queries.check_order_status(order_id, principal.user_id))


@order_router.post("/{order_id}/product", status_code=201)
def add_order_line(
    order_id: str,
    body: AddOrderLineRequest,
    principal: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.lifecycle.add_line_to_existing_order(order_id, body.product_id, body.quantity, principal.token)
    return respond(result, status_code=201)


@order_router.delete("/{order_id}/product/{line_id}")
def remove_order_line(
    order_id: str,
    line_id: str,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.lifecycle.remove_line_from_order(line_id))


@order_router.get("/{order_id}/detail")
def customer_order_detail(
    order_id: str,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.queries.get_customer_order_detail(order_id, principal.user_id))


@order_router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.lifecycle.update_order_status(order_id, body.status))


@order_router.patch("/{order_id}/cancel")
def cancel_order(
    order_id: str,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.lifecycle.cancel_order(order_id, principal.user_id))


@order_router.get("/{order_id}")
def get_order(
    order_id: str,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.queries.get_order(order_id))


@order_router.delete("/{order_id}")
def delete_order(
    order_id: str,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.lifecycle.delete_order(order_id))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.get("/pending-orders")
def pending_payment_orders(
    page: int = 1,
    limit: int = 10,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.list_pending_payment_orders(page=page, limit=limit))


@payment_router.get("/methods")
def list_payment_methods(
    _: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.list_payment_methods())


@payment_router.post("/methods", status_code=201)
def create_payment_method(
    body: PaymentMethodRequest,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.create_payment_method(body.name), status_code=201)


@payment_router.get("/history")
def payment_history(
    page: int = 1,
    limit: int = 10,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    method_id: str | None = None,
    order_status: str | None = None,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.payment_admin.get_payment_history(
        page=page,
        limit=limit,
        date_from=_aware(date_from),
        date_to=_aware(date_to),
        method_id=method_id,
        order_status=order_status,
    )
    return respond(result)


@payment_router.get("/all")
def all_payments(
    page: int = 1,
    limit: int = 10,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.get_all_payments(page=page, limit=limit))


@payment_router.get("/methods/{method_id}")
def get_payment_method(
    method_id: str,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.get_payment_method(method_id))


@payment_router.put("/methods/{method_id}")
def update_payment_method(
    method_id: str,
    body: PaymentMethodRequest,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.update_payment_method(method_id, body.name))


@payment_router.delete("/methods/{method_id}")
def delete_payment_method(
    method_id: str,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.delete_payment_method(method_id))


@payment_router.post("/register/{order_id}", status_code=201)
def register_payment(
    order_id: str,
    body: RegisterPaymentRequest,
    principal: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.payments.register_payment(
        order_id,
        principal.user_id,
        body.payment_method_id,
        delivery_address=body.delivery_address,
        token=principal.token,
    )
    return respond(result, status_code=201)


@payment_router.get("/{payment_id}")
def payment_detail(
    payment_id: str,
    _: Principal = Depends(staff_principal),
    services: OrderingServices = Depends(get_services),
):
    return respond(services.payment_admin.get_payment_detail(payment_id))


@payment_router.get("/{payment_id}/receipt")
def download_receipt(
    payment_id: str,
    _: Principal = Depends(current_principal),
    services: OrderingServices = Depends(get_services),
):
    result = services.payment_admin.get_receipt_path(payment_id)
    if not result.ok:
        return respond(result)
    path = Path(result.value)
    return FileResponse(path, media_type="text/plain", filename=path.name)
