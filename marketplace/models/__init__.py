"""Models package - exports all SQLAlchemy models."""
# Accounts
from marketplace.models.app_user import AppUser, AccountType, VerificationStatus
from marketplace.models.seller_document import SellerDocument, DocumentType, REQUIRED_DOCUMENT_TYPES

# Catalog
from marketplace.models.product import Product

# Orders
from marketplace.models.order import Order, OrderStatus, ORDER_TRANSITIONS
from marketplace.models.order_item import OrderItem
from marketplace.models.business_payment import BusinessPayment, PaymentStatus
from marketplace.models.receipt import BusinessReceipt, CustomerReceipt, ReceiptKind

# Admin
from marketplace.models.audit_log import AuditLog, AuditAction

__all__ = [
    'AppUser', 'AccountType', 'VerificationStatus', 'SellerDocument', 'DocumentType', 'REQUIRED_DOCUMENT_TYPES',
    'Product',
    'Order', 'OrderStatus', 'ORDER_TRANSITIONS', 'OrderItem',
    'BusinessPayment', 'PaymentStatus', 'BusinessReceipt', 'CustomerReceipt', 'ReceiptKind',
    'AuditLog', 'AuditAction',
]
