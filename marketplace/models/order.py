"""Order model."""
from sqlalchemy import Column, BigInteger, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace.database import Base, BigIntId
import enum


class OrderStatus(enum.Enum):
    """Order status enum."""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


# Forward-only lifecycle; cancellation allowed from any non-terminal state
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class Order(Base):
    """Customer order. Line items, payments and receipts are written once with it."""

    __tablename__ = 'customer_order'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    customer_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    delivery_address = Column(Text, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(OrderStatus, name='order_status', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    customer = relationship('AppUser')
    items = relationship('OrderItem', back_populates='order')
    business_payments = relationship('BusinessPayment', back_populates='order')

    def can_transition_to(self, new_status):
        return new_status in ORDER_TRANSITIONS[self.status]

    def __repr__(self):
        return f"<Order(id={self.id}, total={self.total_amount}, status={self.status.value})>"
