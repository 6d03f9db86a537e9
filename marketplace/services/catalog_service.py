"""
Catalog service - business product management, public listing and QR lookup.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Dict, Any, Optional
import logging
import uuid

from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from marketplace.models import Product, AppUser
from marketplace.exceptions import BusinessLogicError, NotFoundError, ForbiddenError
from marketplace.services.pricing_service import compute_public_price

logger = logging.getLogger(__name__)

ALL_CATEGORIES = 'Todos'


def generate_qr_code(business_id: int) -> str:
    """Opaque, unique product identifier encoded in the printed QR image."""
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"QR_{business_id}_{millis}_{uuid.uuid4().hex[:8]}"


def _get_verified_business(session, business_id: int) -> AppUser:
    business = session.query(AppUser).filter_by(id=business_id).first()
    if not business or not business.is_verified:
        raise ForbiddenError('Business must be verified to manage products')
    return business


def create_product(session, business_id: int, name: str, business_price, category: str,
                   stock_quantity: int, min_order_quantity: int, description: str = None,
                   fee_percentage=Decimal('15.00')) -> Product:
    """
    Create a product for a verified business.

    The public price is derived here; callers never set it.
    """
    _get_verified_business(session, business_id)

    if stock_quantity < 0:
        raise BusinessLogicError('Stock quantity cannot be negative')
    if min_order_quantity < 1:
        raise BusinessLogicError('Minimum order quantity must be at least 1')

    fee_percentage = Decimal(str(fee_percentage))
    public_price = compute_public_price(business_price, fee_percentage)

    product = Product(
        business_id=business_id,
        name=name.strip(),
        description=description,
        business_price=Decimal(str(business_price)),
        platform_fee_percentage=fee_percentage,
        public_price=public_price,
        category=category.strip(),
        stock_quantity=stock_quantity,
        min_order_quantity=min_order_quantity,
        qr_code=generate_qr_code(business_id),
        is_active=True
    )
    session.add(product)
    session.commit()

    logger.info(f"Product {product.id} created by business {business_id} (public price {public_price})")
    return product


def get_business_product(session, business_id: int, product_id: int) -> Product:
    product = session.query(Product).filter_by(id=product_id).first()
    if not product:
        raise NotFoundError(f'Product {product_id} not found')
    if product.business_id != business_id:
        raise ForbiddenError('You can only manage your own products')
    return product


def update_product(session, business_id: int, product_id: int, changes: Dict[str, Any]) -> Product:
    """
    Apply a partial update. A new business price recomputes the public price
    with the product's own fee percentage.
    """
    _get_verified_business(session, business_id)
    product = get_business_product(session, business_id, product_id)

    if 'business_price' in changes and changes['business_price'] is not None:
        new_price = Decimal(str(changes['business_price']))
        product.public_price = compute_public_price(new_price, product.platform_fee_percentage)
        product.business_price = new_price

    for field in ('name', 'description', 'category'):
        if field in changes and changes[field] is not None:
            setattr(product, field, changes[field].strip() if isinstance(changes[field], str) else changes[field])

    if changes.get('stock_quantity') is not None:
        if changes['stock_quantity'] < 0:
            raise BusinessLogicError('Stock quantity cannot be negative')
        product.stock_quantity = changes['stock_quantity']

    if changes.get('min_order_quantity') is not None:
        if changes['min_order_quantity'] < 1:
            raise BusinessLogicError('Minimum order quantity must be at least 1')
        product.min_order_quantity = changes['min_order_quantity']

    if 'is_active' in changes and changes['is_active'] is not None:
        product.is_active = bool(changes['is_active'])

    session.commit()
    logger.info(f"Product {product.id} updated by business {business_id}: {sorted(changes)}")
    return product


def deactivate_product(session, business_id: int, product_id: int) -> Product:
    """Soft delete: order items keep referencing the row."""
    product = get_business_product(session, business_id, product_id)
    product.is_active = False
    session.commit()
    logger.info(f"Product {product.id} deactivated by business {business_id}")
    return product


def list_business_products(session, business_id: int) -> List[Product]:
    return (session.query(Product)
            .filter(Product.business_id == business_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all())


def _available_products_query(session):
    """Active products of verified businesses."""
    return (session.query(Product)
            .join(AppUser, Product.business_id == AppUser.id)
            .filter(Product.is_active.is_(True), AppUser.is_verified.is_(True)))


def list_public_products(session, category: Optional[str] = None, search: Optional[str] = None,
                         page: int = 1, page_size: int = 20) -> Dict[str, Any]:
    """Public catalog page: in-stock products, newest first."""
    page = max(page, 1)
    query = _available_products_query(session).filter(Product.stock_quantity > 0)

    if category and category != ALL_CATEGORIES:
        query = query.filter(Product.category == category)

    if search:
        # Sanitize input (limit length)
        pattern = f"%{search[:100].lower()}%"
        query = query.filter(or_(
            Product.name.ilike(pattern),
            Product.description.ilike(pattern)
        ))

    products = (query
                .order_by(Product.created_at.desc(), Product.id.desc())
                .limit(page_size)
                .offset((page - 1) * page_size)
                .all())

    return {
        'products': [p.to_public_dict() for p in products],
        'pagination': {
            'page': page,
            'limit': page_size,
            'has_more': len(products) == page_size,
        },
    }


def find_product_by_qr(session, qr_code: str) -> Dict[str, Any]:
    """
    Resolve a scanned QR identifier.

    Raises:
        BusinessLogicError: no code given, or stock below the minimum order
        NotFoundError: unknown code or product not available
    """
    if not qr_code:
        raise BusinessLogicError('QR code is required')

    product = (_available_products_query(session)
               .options(joinedload(Product.business))
               .filter(Product.qr_code == qr_code)
               .first())
    if not product:
        raise NotFoundError('Product not found or not available')

    data = product.to_public_dict()
    data['business'] = {
        'name': product.business.business_name,
        'address': product.business.address,
    }

    if product.stock_quantity < product.min_order_quantity:
        raise BusinessLogicError('Product without sufficient stock', payload={'product': data})

    return data
