"""Shared BDD fixtures and step definitions for the ordering service."""

import pytest
from ordering.order.order import Order
from ordering.payment.payment import Payment, PaymentMethod
from protean import current_domain
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def context():
    """Scenario state: the current order, the last result and payment methods by name."""
    return {"order_id": None, "result": None, "methods": {}}


def _order(context):
    return current_domain.repository_for(Order).find_by_id(context["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalogue has product "{product_id}" priced {price:f} with stock {stock:d}'))
def _(inventory, product_id, price, stock):
    inventory.add_product(product_id, price=price, stock=stock, name=product_id)


@given(parsers.cfparse('the stock of "{product_id}" drops to {stock:d}'))
def _(inventory, product_id, stock):
    product = inventory.products[product_id]
    inventory.add_product(product_id, price=product.price, stock=stock, name=product.name)


@given(parsers.cfparse('product "{product_id}" has an active {percent:d}% promotion'))
def _(promotions, product_id, percent):
    promotions.add_rule(product_id, percent_off=percent)


@given(parsers.cfparse('a payment method "{name}"'))
def _(context, name):
    method = PaymentMethod(name=name)
    current_domain.repository_for(PaymentMethod).add(method)
    context["methods"][name] = method


@given(parsers.cfparse('customer "{customer_id}" has {quantity:d} of "{product_id}" in the cart'))
def _(services, context, customer_id, quantity, product_id):
    result = services.cart.add_item(customer_id, product_id, quantity)
    assert result.ok, result.message
    context["order_id"] = result.value["order"]["order_id"]


@given("receipts cannot be generated")
def _(receipts):
    receipts.configure(should_succeed=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('customer "{customer_id}" adds {quantity:d} of "{product_id}" to the cart'))
def _(services, context, customer_id, quantity, product_id):
    context["result"] = services.cart.add_item(customer_id, product_id, quantity)


@when(parsers.cfparse('customer "{customer_id}" pays the order with "{method_name}"'))
def _(services, context, customer_id, method_name):
    method = context["methods"][method_name]
    context["result"] = services.payments.register_payment(context["order_id"], customer_id, method.id)


@when(parsers.cfparse('customer "{customer_id}" cancels the order'))
def _(services, context, customer_id):
    context["result"] = services.lifecycle.cancel_order(context["order_id"], customer_id)


@when(parsers.cfparse('staff sets the order status to "{status}"'))
def _(services, context, status):
    context["result"] = services.lifecycle.update_order_status(context["order_id"], status)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the operation succeeds")
def _(context):
    assert context["result"].ok, context["result"].message


@then(parsers.cfparse('the operation fails with "{kind}"'))
def _(context, kind):
    result = context["result"]
    assert not result.ok
    assert result.kind.value == kind


@then(parsers.cfparse('the order status is "{status}"'))
def _(context, status):
    assert _order(context).status == status


@then(parsers.cfparse("the order has {count:d} registered payments"))
def _(context, count):
    page = current_domain.repository_for(Payment).history(1, 10, order_ids={str(context["order_id"])})
    assert page.total == count
