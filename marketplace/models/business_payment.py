"""Business payment model - instant payout records."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace.database import Base, BigIntId
import enum


class PaymentStatus(str, enum.Enum):
    """Payments are synchronous, so rows are written already processed."""
    PROCESSED = 'processed'


class BusinessPayment(Base):
    """Payout owed to one business for its lines in one order."""

    __tablename__ = 'business_payment'
    __table_args__ = (
        UniqueConstraint('order_id', 'business_id', name='uq_business_payment_order_business'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('customer_order.id'), nullable=False, index=True)
    business_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    quantity_sold = Column(Integer, nullable=False)
    # Only set when the business contributed a single line
    unit_business_price = Column(Numeric(10, 2), nullable=True)
    total_business_payment = Column(Numeric(12, 2), nullable=False)
    platform_fee_amount = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PROCESSED.value)
    processed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    order = relationship('Order', back_populates='business_payments')
    business = relationship('AppUser')

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'quantity_sold': self.quantity_sold,
            'unit_business_price': float(self.unit_business_price) if self.unit_business_price is not None else None,
            'total_business_payment': float(self.total_business_payment),
            'platform_fee_amount': float(self.platform_fee_amount),
            'payment_status': self.payment_status,
            'processed_at': self.processed_at.isoformat() if self.processed_at else None,
        }

    def __repr__(self):
        return f"<BusinessPayment(id={self.id}, order_id={self.order_id}, business_id={self.business_id})>"
