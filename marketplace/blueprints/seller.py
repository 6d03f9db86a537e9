"""Seller blueprint: verification documents."""
from flask import Blueprint, jsonify, g, Response

from marketplace.database import get_session
from marketplace.forms import validate_or_raise
from marketplace.forms.admin_forms import SellerDocumentForm
from marketplace.middleware import require_account_type
from marketplace.models import AccountType
from marketplace.services import verification_service

seller_bp = Blueprint('seller', __name__, url_prefix='/api/seller')


@seller_bp.route('/documents', methods=['GET'])
@require_account_type(AccountType.BUSINESS)
def list_documents() -> Response:
    documents = verification_service.list_documents(get_session(), g.identity.user_id)
    return jsonify({'documents': [d.to_dict() for d in documents]})


@seller_bp.route('/documents', methods=['POST'])
@require_account_type(AccountType.BUSINESS)
def add_document() -> Response:
    """Register a document uploaded to external storage."""
    form = validate_or_raise(SellerDocumentForm())
    document = verification_service.add_document(
        get_session(),
        user_id=g.identity.user_id,
        document_type=form.document_type.data,
        file_url=form.file_url.data,
        file_name=form.file_name.data
    )
    response = jsonify({'message': 'Document uploaded successfully', 'document': document.to_dict()})
    response.status_code = 201
    return response


@seller_bp.route('/submit-verification', methods=['POST'])
@require_account_type(AccountType.BUSINESS)
def submit_verification() -> Response:
    user = verification_service.submit_for_verification(get_session(), g.identity.user_id)
    return jsonify({
        'message': 'Documents submitted for verification',
        'verification_status': user.verification_status,
    })
