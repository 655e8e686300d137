"""Stock checks against the inventory service."""

from ordering.errors import Conflict
from ordering.gateways.port import InventoryPort, ProductInfo


def require_available(inventory: InventoryPort, product_id, quantity: int, token=None) -> ProductInfo:
    """Return the product if it is active with at least ``quantity`` in stock."""
    product = inventory.get_product(product_id, token)
    if product is None or not product.active:
        raise Conflict(f"Product {product_id} is not available")
    if product.stock < quantity:
        raise Conflict(
            f"Insufficient stock for product {product.name or product_id}. "
            f"Requested: {quantity}, available: {product.stock}"
        )
    return product
