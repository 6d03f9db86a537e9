"""Middleware for identity loading and access control."""
from functools import wraps
from flask import g, request, current_app

from marketplace.exceptions import UnauthenticatedError, ForbiddenError, MarketplaceError
from marketplace.services.auth_service import verify_token


def _token_from_request():
    """Token from the auth cookie, falling back to an Authorization: Bearer header."""
    token = request.cookies.get(current_app.config.get('AUTH_COOKIE_NAME', 'token'))
    if token:
        return token
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def load_identity():
    """
    Load the caller identity into g (Flask's per-request global).

    Sets g.identity to an Identity, or None for anonymous or invalid tokens.
    An invalid token is not an error here; protected routes reject it.
    """
    g.identity = None
    g.auth_error = None

    token = _token_from_request()
    if not token:
        return

    try:
        g.identity = verify_token(token)
    except MarketplaceError as e:
        g.auth_error = e.message
        current_app.logger.info(f"Rejected identity token: {e.message}")


def require_login(f):
    """Decorator: Require a valid identity token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('identity') is None:
            raise UnauthenticatedError(g.get('auth_error') or 'Authentication required')
        return f(*args, **kwargs)
    return decorated_function


def require_account_type(*account_types):
    """
    Decorator: Restrict a route to some account types.

    Usage:
        @require_account_type('business')
        @require_account_type('consumer')

    Implies require_login.
    """
    allowed = {getattr(t, 'value', t) for t in account_types}

    def decorator(f):
        @wraps(f)
        @require_login
        def decorated_function(*args, **kwargs):
            if g.identity.account_type not in allowed:
                names = ' or '.join(sorted(allowed))
                raise ForbiddenError(f'Only {names} accounts can access this endpoint')
            return f(*args, **kwargs)
        return decorated_function
    return decorator
