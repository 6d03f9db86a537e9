"""
Admin blueprint: seller approval dashboard and order status management.
"""
from flask import Blueprint, jsonify, g, Response

from marketplace.database import get_session
from marketplace.forms import validate_or_raise
from marketplace.forms.admin_forms import VerificationDecisionForm, OrderStatusForm
from marketplace.middleware import require_account_type
from marketplace.models import AccountType
from marketplace.services import verification_service
from marketplace.services.admin_dashboard_service import get_dashboard_stats
from marketplace.services.order_service import advance_order_status

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/dashboard', methods=['GET'])
@require_account_type(AccountType.ADMIN)
def dashboard() -> Response:
    return jsonify(get_dashboard_stats(get_session()))


@admin_bp.route('/pending-sellers', methods=['GET'])
@require_account_type(AccountType.ADMIN)
def pending_sellers() -> Response:
    """Businesses waiting for review, with their documents."""
    return jsonify({'users': verification_service.list_pending_sellers(get_session())})


@admin_bp.route('/verify-seller', methods=['POST'])
@require_account_type(AccountType.ADMIN)
def verify_seller() -> Response:
    form = validate_or_raise(VerificationDecisionForm())
    seller = verification_service.verify_seller(
        get_session(),
        user_id=form.user_id.data,
        action=form.action.data,
        notes=form.notes.data or None,
        admin_id=g.identity.user_id
    )
    return jsonify({
        'message': f"Seller {'approved' if form.action.data == 'approve' else 'rejected'} successfully",
        'user': seller.to_dict(),
    })


@admin_bp.route('/orders/<int:order_id>/status', methods=['POST'])
@require_account_type(AccountType.ADMIN)
def update_order_status(order_id: int) -> Response:
    form = validate_or_raise(OrderStatusForm())
    order = advance_order_status(get_session(), order_id, form.status.data, actor_id=g.identity.user_id)
    return jsonify({'order_id': order.id, 'status': order.status.value})
