"""
Authentication service for user management.

Handles registration, credential checks and identity tokens (JWT).
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

import jwt
from flask import current_app, g
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from marketplace.models import AppUser, AccountType, VerificationStatus
from marketplace.exceptions import BusinessLogicError, UnauthenticatedError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'


@dataclass(frozen=True)
class Identity:
    """Verified caller identity, as carried by the token."""
    user_id: int
    account_type: str


def _verification_defaults(account_type: str) -> dict:
    """Businesses sell once approved; admins are approved from the start."""
    if account_type == AccountType.ADMIN.value:
        return {'can_sell': False, 'is_verified': True, 'verification_status': VerificationStatus.APPROVED.value}
    return {
        'can_sell': account_type == AccountType.BUSINESS.value,
        'is_verified': False,
        'verification_status': VerificationStatus.PENDING.value,
    }


def create_user(session, email: str, password: str, account_type: str, first_name: str, last_name: str,
                address: str = None, phone: str = None, business_name: str = None,
                cedula_number: str = None, bank_account_info: dict = None) -> AppUser:
    """
    Create a user with the verification defaults of its account type.

    Raises:
        BusinessLogicError: unknown account type or email already registered
    """
    if account_type not in {t.value for t in AccountType}:
        raise BusinessLogicError(f'Invalid account type: {account_type}')

    email = email.strip().lower()
    existing = session.query(AppUser).filter(func.lower(AppUser.email) == email).first()
    if existing:
        raise BusinessLogicError('User already exists with this email')

    user = AppUser(
        email=email,
        account_type=account_type,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        address=address,
        phone=phone or None,
        business_name=business_name or None,
        cedula_number=cedula_number or None,
        bank_account_info=bank_account_info,
        active=True,
        **_verification_defaults(account_type)
    )
    user.set_password(password)

    try:
        session.add(user)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Registration race on email {email}: {e}")
        raise BusinessLogicError('User already exists with this email')

    logger.info(f"Registered {account_type} user {user.id} ({email})")
    return user


def authenticate_user(session, email: str, password: str) -> AppUser:
    """Return the user for valid credentials, else raise UnauthenticatedError."""
    user = session.query(AppUser).filter(func.lower(AppUser.email) == email.strip().lower()).first()

    if not user or not user.active or not user.check_password(password):
        logger.info(f"Failed login attempt for {email}")
        raise UnauthenticatedError('Invalid credentials')

    return user


def generate_token(user: AppUser) -> str:
    """Sign an identity token for the user."""
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': user.id,
        'email': user.email,
        'account_type': user.account_type,
        'can_sell': user.can_sell,
        'iat': now,
        'exp': now + timedelta(days=current_app.config.get('JWT_EXPIRES_DAYS', 7)),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Identity:
    """Decode a token into an Identity."""
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError('Session expired')
    except jwt.InvalidTokenError:
        raise UnauthenticatedError('Invalid token')

    try:
        return Identity(user_id=int(payload['user_id']), account_type=str(payload['account_type']))
    except (KeyError, TypeError, ValueError):
        raise UnauthenticatedError('Invalid token')


def current_identity():
    """Identity loaded for this request, or None."""
    return g.get('identity')
