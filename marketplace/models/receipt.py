"""Receipt models - immutable snapshots of an order's money split."""
from sqlalchemy import Column, BigInteger, String, Text, Numeric, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from marketplace.database import Base, BigIntId
import enum


class ReceiptKind(str, enum.Enum):
    BUSINESS = 'business'
    CUSTOMER = 'customer'


class BusinessReceipt(Base):
    """What one business earned from one order."""

    __tablename__ = 'business_receipt'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('customer_order.id'), nullable=False, index=True)
    business_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    receipt_number = Column(String(50), nullable=False, unique=True)
    items = Column(JSON, nullable=False)
    total_earned = Column(Numeric(12, 2), nullable=False)
    platform_fee_deducted = Column(Numeric(12, 2), nullable=False)
    net_payment = Column(Numeric(12, 2), nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<BusinessReceipt(number='{self.receipt_number}')>"


class CustomerReceipt(Base):
    """What the customer paid for one order."""

    __tablename__ = 'customer_receipt'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('customer_order.id'), nullable=False, unique=True)
    customer_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    receipt_number = Column(String(50), nullable=False, unique=True)
    items = Column(JSON, nullable=False)
    total_paid = Column(Numeric(12, 2), nullable=False)
    delivery_address = Column(Text, nullable=False)
    order_date = Column(DateTime(timezone=True), nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<CustomerReceipt(number='{self.receipt_number}')>"
