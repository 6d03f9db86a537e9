"""Inventory validation for order lines."""
from typing import Optional

from marketplace.models import Product
from marketplace.exceptions import (
    ProductUnavailableError, BelowMinimumOrderError, InsufficientStockError
)


def is_product_available(product: Optional[Product]) -> bool:
    """Active product owned by a verified business."""
    if product is None or not product.is_active:
        return False
    business = product.business
    return business is not None and bool(business.is_verified)


def validate_line(product: Optional[Product], requested_quantity: int, product_id=None) -> None:
    """
    Check one requested line against the product's current state.

    Checks run in order: availability, minimum order quantity, stock.
    Pure check; stock is only decremented when the order commits.

    Raises:
        ProductUnavailableError, BelowMinimumOrderError, InsufficientStockError
    """
    if not is_product_available(product):
        raise ProductUnavailableError(product.id if product is not None else product_id)

    if requested_quantity < product.min_order_quantity:
        raise BelowMinimumOrderError(
            product.id, product.name, product.min_order_quantity, requested_quantity
        )

    if requested_quantity > product.stock_quantity:
        raise InsufficientStockError(
            product.id, product.name, requested_quantity, product.stock_quantity
        )
