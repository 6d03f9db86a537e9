"""
Authentication blueprint.
Handles registration, login, logout and the current-user lookup.
"""
from flask import Blueprint, request, jsonify, g, current_app, Response
import logging

from marketplace.database import get_session
from marketplace.models import AppUser
from marketplace.forms import validate_or_raise
from marketplace.forms.auth_forms import RegistrationForm, LoginForm
from marketplace.middleware import require_login
from marketplace.services.auth_service import create_user, authenticate_user, generate_token
from marketplace.exceptions import NotFoundError

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _set_auth_cookie(response: Response, token: str) -> Response:
    response.set_cookie(
        current_app.config.get('AUTH_COOKIE_NAME', 'token'),
        token,
        max_age=current_app.config.get('JWT_EXPIRES_DAYS', 7) * 24 * 60 * 60,
        httponly=True,
        secure=current_app.config.get('AUTH_COOKIE_SECURE', False),
        samesite=current_app.config.get('AUTH_COOKIE_SAMESITE', 'Strict')
    )
    return response


@auth_bp.route('/register', methods=['POST'])
def register() -> Response:
    """Create a consumer or business account and log it in."""
    form = validate_or_raise(RegistrationForm())
    session = get_session()

    payload = request.get_json(silent=True) or {}
    bank_account_info = payload.get('bank_account_info')

    user = create_user(
        session,
        email=form.email.data,
        password=form.password.data,
        account_type=form.account_type.data,
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        address=form.address.data,
        phone=form.phone.data,
        business_name=form.business_name.data,
        cedula_number=form.cedula_number.data,
        bank_account_info=bank_account_info if isinstance(bank_account_info, dict) else None
    )

    response = jsonify({
        'message': 'User registered successfully',
        'user': user.to_dict(),
        'requires_documents': user.is_business and not user.is_verified,
    })
    response.status_code = 201
    return _set_auth_cookie(response, generate_token(user))


@auth_bp.route('/login', methods=['POST'])
def login() -> Response:
    """Validate email + password and issue the identity cookie."""
    form = validate_or_raise(LoginForm())
    user = authenticate_user(get_session(), form.email.data, form.password.data)
    token = generate_token(user)

    logger.info(f"User {user.id} logged in")
    response = jsonify({'message': 'Login successful', 'user': user.to_dict(), 'token': token})
    return _set_auth_cookie(response, token)


@auth_bp.route('/logout', methods=['POST'])
def logout() -> Response:
    response = jsonify({'message': 'Logged out'})
    response.delete_cookie(current_app.config.get('AUTH_COOKIE_NAME', 'token'))
    return response


@auth_bp.route('/me', methods=['GET'])
@require_login
def me() -> Response:
    user = get_session().query(AppUser).filter_by(id=g.identity.user_id, active=True).first()
    if not user:
        raise NotFoundError('User not found')
    return jsonify({'user': user.to_dict()})
