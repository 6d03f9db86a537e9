"""Product model."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace.database import Base, BigIntId


class Product(Base):
    """Product listed by a business. public_price is derived from business_price and the fee."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('stock_quantity >= 0', name='ck_product_stock_non_negative'),
        CheckConstraint('min_order_quantity >= 1', name='ck_product_min_order_positive'),
        CheckConstraint('public_price >= business_price', name='ck_product_public_price'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    business_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    business_price = Column(Numeric(10, 2), nullable=False)
    platform_fee_percentage = Column(Numeric(5, 2), nullable=False, default=15, server_default='15.00')
    public_price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0, server_default='0')
    min_order_quantity = Column(Integer, nullable=False, default=1, server_default='1')
    qr_code = Column(String(255), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship('AppUser', back_populates='products')

    @property
    def platform_fee(self):
        """Per-unit platform revenue."""
        return self.public_price - self.business_price

    def to_public_dict(self):
        """Fields a shopper may see (no business price or fee)."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'public_price': float(self.public_price),
            'category': self.category,
            'stock_quantity': self.stock_quantity,
            'min_order_quantity': self.min_order_quantity,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def to_dict(self):
        """Full view for the owning business."""
        data = self.to_public_dict()
        data.update({
            'business_price': float(self.business_price),
            'platform_fee_percentage': float(self.platform_fee_percentage),
            'platform_fee': float(self.platform_fee),
            'qr_code': self.qr_code,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        })
        return data

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', qr_code='{self.qr_code}')>"
