"""Ordering bounded context: carts, order lifecycle and payment registration.

Orders, order lines, payments and payment methods are CQRS aggregates.
Application services in ``cart``, ``order`` and ``payment`` coordinate them
with the sibling services reached through ``ordering.gateways``.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
