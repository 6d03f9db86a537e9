"""Seller verification documents."""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from marketplace.database import Base, BigIntId
import enum


class DocumentType(str, enum.Enum):
    CEDULA = 'cedula'
    REVENUE_STATEMENT = 'revenue_statement'
    BANK_STATEMENT = 'bank_statement'
    TAX_RETURN = 'tax_return'
    BUSINESS_REGISTRATION = 'business_registration'


# Documents every business must upload before asking for review
REQUIRED_DOCUMENT_TYPES = (
    DocumentType.CEDULA,
    DocumentType.REVENUE_STATEMENT,
    DocumentType.BANK_STATEMENT,
)


class SellerDocument(Base):
    """Document a business submits for verification. The file itself lives in external storage."""

    __tablename__ = 'seller_document'
    __table_args__ = (
        CheckConstraint(
            "document_type IN ('cedula', 'revenue_statement', 'bank_statement', "
            "'tax_return', 'business_registration')",
            name='ck_seller_document_type'
        ),
        CheckConstraint(
            "verification_status IN ('pending', 'approved', 'rejected')",
            name='ck_seller_document_status'
        ),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    document_type = Column(String(50), nullable=False)
    file_url = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    verification_status = Column(String(20), nullable=False, default='pending')
    admin_notes = Column(Text, nullable=True)

    user = relationship('AppUser', back_populates='documents')

    def to_dict(self):
        return {
            'id': self.id,
            'document_type': self.document_type,
            'file_name': self.file_name,
            'file_url': self.file_url,
            'upload_date': self.upload_date.isoformat() if self.upload_date else None,
            'verification_status': self.verification_status,
            'admin_notes': self.admin_notes,
        }

    def __repr__(self):
        return f"<SellerDocument(id={self.id}, user_id={self.user_id}, type='{self.document_type}')>"
