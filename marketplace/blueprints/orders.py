"""Orders blueprint: checkout and order history for consumers."""
from flask import Blueprint, request, jsonify, g, Response
import logging

from marketplace.database import get_session
from marketplace.exceptions import MarketplaceError
from marketplace.middleware import require_account_type
from marketplace.models import AccountType
from marketplace.services.order_gateway import SqlAlchemyOrderGateway
from marketplace.services.auth_service import current_identity
from marketplace.services.order_service import parse_order_request, place_order, list_customer_orders
from marketplace.blueprints.metrics import record_checkout

logger = logging.getLogger(__name__)

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


@orders_bp.route('', methods=['POST'])
@require_account_type(AccountType.CONSUMER)
def create_order() -> Response:
    """Check out a cart: [{product_id, quantity}] plus a delivery address."""
    gateway = SqlAlchemyOrderGateway(get_session())

    try:
        order_request = parse_order_request(request.get_json(silent=True))
        result = place_order(order_request, gateway, current_identity())
    except MarketplaceError as e:
        record_checkout(e.kind, at_commit=getattr(e, 'at_commit', False))
        raise

    record_checkout('confirmed', total_amount=result.total_amount)
    response = jsonify({'message': 'Order placed successfully', **result.to_dict()})
    response.status_code = 201
    return response


@orders_bp.route('', methods=['GET'])
@require_account_type(AccountType.CONSUMER)
def list_orders() -> Response:
    return jsonify({'orders': list_customer_orders(get_session(), g.identity.user_id)})
