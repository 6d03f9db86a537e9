"""AppUser model - consumers, businesses and platform admins."""
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from marketplace.database import Base, BigIntId
import enum


class AccountType(str, enum.Enum):
    """Account type carried in identity tokens."""
    CONSUMER = 'consumer'
    BUSINESS = 'business'
    ADMIN = 'admin'


class VerificationStatus(str, enum.Enum):
    """Seller verification status (also used for documents)."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class AppUser(Base):
    """Marketplace user. Businesses must be verified before they can sell."""

    __tablename__ = 'app_user'
    __table_args__ = (
        CheckConstraint(
            "account_type IN ('consumer', 'business', 'admin')",
            name='ck_app_user_account_type'
        ),
        CheckConstraint(
            "verification_status IN ('pending', 'approved', 'rejected')",
            name='ck_app_user_verification_status'
        ),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    account_type = Column(String(20), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    # Business fields
    business_name = Column(String(255), nullable=True)
    cedula_number = Column(String(20), nullable=True)
    bank_account_info = Column(JSON, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_status = Column(String(20), nullable=False, default=VerificationStatus.PENDING.value)
    can_sell = Column(Boolean, nullable=False, default=False)

    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    products = relationship('Product', back_populates='business')
    documents = relationship('SellerDocument', back_populates='user', cascade='all, delete-orphan')

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_business(self):
        return self.account_type == AccountType.BUSINESS.value

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'account_type': self.account_type,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'phone': self.phone,
            'address': self.address,
            'business_name': self.business_name,
            'is_verified': self.is_verified,
            'verification_status': self.verification_status,
            'can_sell': self.can_sell,
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', type='{self.account_type}')>"
