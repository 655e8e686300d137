"""Wiring of the ordering application services.

``build_services`` is called once by the composition root with the
collaborator adapters; every service receives its dependencies explicitly.
"""

from dataclasses import dataclass

from ordering.cart.engine import CartEngine
from ordering.gateways import Collaborators
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.queries import OrderQueries
from ordering.payment.management import PaymentManagement
from ordering.payment.transaction import PaymentTransaction
from ordering.pricing.calculator import PriceCalculator
from ordering.shared.locking import KeyedLocks


@dataclass
class OrderingServices:
    collaborators: Collaborators
    calculator: PriceCalculator
    cart: CartEngine
    lifecycle: OrderLifecycle
    queries: OrderQueries
    payments: PaymentTransaction
    payment_admin: PaymentManagement


def build_services(collaborators: Collaborators) -> OrderingServices:
    locks = KeyedLocks()
    calculator = PriceCalculator(collaborators.inventory, collaborators.promotions)
    return OrderingServices(
        collaborators=collaborators,
        calculator=calculator,
        cart=CartEngine(collaborators.inventory, locks),
        lifecycle=OrderLifecycle(
            inventory=collaborators.inventory,
            tables=collaborators.tables,
            clients=collaborators.clients,
            email=collaborators.email,
            receipts=collaborators.receipts,
            calculator=calculator,
            locks=locks,
        ),
        queries=OrderQueries(),
        payments=PaymentTransaction(
            inventory=collaborators.inventory,
            tables=collaborators.tables,
            receipts=collaborators.receipts,
            calculator=calculator,
            locks=locks,
        ),
        payment_admin=PaymentManagement(),
    )
