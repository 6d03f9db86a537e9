"""Public catalog blueprint: product listing and QR scan."""
from flask import Blueprint, request, jsonify, current_app, Response

from marketplace.database import get_session
from marketplace.services.catalog_service import list_public_products, find_product_by_qr

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api')


@catalog_bp.route('/products', methods=['GET'])
def list_products() -> Response:
    """Browse in-stock products of verified businesses."""
    try:
        page = int(request.args.get('page', '1'))
    except ValueError:
        page = 1

    result = list_public_products(
        get_session(),
        category=request.args.get('category', '').strip() or None,
        search=request.args.get('search', '').strip() or None,
        page=page,
        page_size=current_app.config.get('PRODUCTS_PAGE_SIZE', 20)
    )
    return jsonify(result)


@catalog_bp.route('/qr/scan', methods=['POST'])
def scan_qr() -> Response:
    """Resolve a scanned QR identifier to a product."""
    payload = request.get_json(silent=True) or {}
    qr_code = payload.get('qr_code') or payload.get('qrCode')
    product = find_product_by_qr(get_session(), qr_code.strip() if isinstance(qr_code, str) else None)
    return jsonify({'success': True, 'product': product})
