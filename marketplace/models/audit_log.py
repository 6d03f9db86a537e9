"""
Audit Log model for tracking admin actions in the system.
"""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from marketplace.database import Base, BigIntId


class AuditAction(enum.Enum):
    """Enumeration of auditable actions."""
    # Seller verification
    SELLER_APPROVED = "SELLER_APPROVED"
    SELLER_REJECTED = "SELLER_REJECTED"

    # Orders
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"

    # Admin accounts
    ADMIN_CREATED = "ADMIN_CREATED"


class AuditLog(Base):
    """Audit log for tracking who changed what."""
    __tablename__ = 'audit_log'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    actor_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)
    action = Column(SQLEnum(AuditAction, name='audit_action'), nullable=False, index=True)
    resource_type = Column(String(50))  # e.g., 'user', 'order'
    resource_id = Column(BigInteger)
    details = Column(Text)  # JSON with additional details
    ip_address = Column(String(45))  # IPv4 or IPv6
    user_agent = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    # Relationships
    actor = relationship('AppUser')

    def __repr__(self):
        return f"<AuditLog {self.action.value} by user {self.actor_id} at {self.created_at}>"
