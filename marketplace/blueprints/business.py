"""Business blueprint: product management and payout reports for sellers."""
from decimal import Decimal
from flask import Blueprint, request, jsonify, g, current_app, Response

from marketplace.database import get_session
from marketplace.forms import validate_or_raise
from marketplace.forms.catalog_forms import ProductForm, ProductUpdateForm
from marketplace.middleware import require_account_type
from marketplace.models import AccountType
from marketplace.services import catalog_service
from marketplace.services.payment_service import get_business_payments

business_bp = Blueprint('business', __name__, url_prefix='/api/business')


@business_bp.route('/products', methods=['GET'])
@require_account_type(AccountType.BUSINESS)
def list_products() -> Response:
    products = catalog_service.list_business_products(get_session(), g.identity.user_id)
    return jsonify({'products': [p.to_dict() for p in products]})


@business_bp.route('/products', methods=['POST'])
@require_account_type(AccountType.BUSINESS)
def create_product() -> Response:
    """Create a product; the platform fee and public price are computed server-side."""
    form = validate_or_raise(ProductForm())
    product = catalog_service.create_product(
        get_session(),
        business_id=g.identity.user_id,
        name=form.name.data,
        description=form.description.data or None,
        business_price=form.business_price.data,
        category=form.category.data,
        stock_quantity=form.stock_quantity.data,
        min_order_quantity=form.min_order_quantity.data,
        fee_percentage=Decimal(str(current_app.config.get('PLATFORM_FEE_PERCENTAGE', '15.00')))
    )
    response = jsonify({'message': 'Product created successfully with QR code', 'product': product.to_dict()})
    response.status_code = 201
    return response


@business_bp.route('/products/<int:product_id>', methods=['PUT'])
@require_account_type(AccountType.BUSINESS)
def update_product(product_id: int) -> Response:
    form = validate_or_raise(ProductUpdateForm())
    submitted = set((request.get_json(silent=True) or request.form).keys())
    changes = {name: field.data for name, field in form._fields.items() if name in submitted}

    product = catalog_service.update_product(get_session(), g.identity.user_id, product_id, changes)
    return jsonify({'message': 'Product updated successfully', 'product': product.to_dict()})


@business_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_account_type(AccountType.BUSINESS)
def delete_product(product_id: int) -> Response:
    product = catalog_service.deactivate_product(get_session(), g.identity.user_id, product_id)
    return jsonify({'message': 'Product deactivated', 'product': product.to_dict()})


@business_bp.route('/payments', methods=['GET'])
@require_account_type(AccountType.BUSINESS)
def payments() -> Response:
    """Payout summary, today's figures and recent processed payments."""
    data = get_business_payments(
        get_session(),
        g.identity.user_id,
        recent_limit=current_app.config.get('RECENT_PAYMENTS_LIMIT', 50)
    )
    return jsonify(data)
