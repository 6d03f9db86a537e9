"""
Seller verification workflow.

Businesses register the documents they uploaded, submit them for review,
and an admin approves or rejects the seller together with every document.
"""
from datetime import datetime, timezone
from typing import List, Dict, Any
import logging

from sqlalchemy.orm import selectinload

from marketplace.models import (
    AppUser, SellerDocument, AccountType, VerificationStatus, AuditAction, REQUIRED_DOCUMENT_TYPES
)
from marketplace.exceptions import BusinessLogicError, NotFoundError
from marketplace.services.audit_service import log_action

logger = logging.getLogger(__name__)


def add_document(session, user_id: int, document_type: str, file_url: str, file_name: str) -> SellerDocument:
    """Record a document already stored elsewhere."""
    document = SellerDocument(
        user_id=user_id,
        document_type=document_type,
        file_url=file_url,
        file_name=file_name,
        verification_status=VerificationStatus.PENDING.value,
        upload_date=datetime.now(timezone.utc)
    )
    session.add(document)
    session.commit()
    logger.info(f"Document {document.id} ({document_type}) added for seller {user_id}")
    return document


def list_documents(session, user_id: int) -> List[SellerDocument]:
    return (session.query(SellerDocument)
            .filter(SellerDocument.user_id == user_id)
            .order_by(SellerDocument.upload_date.desc(), SellerDocument.id.desc())
            .all())


def submit_for_verification(session, user_id: int) -> AppUser:
    """
    Put the seller back in the review queue.

    Raises:
        NotFoundError: no user with that id
        BusinessLogicError: a required document type has not been uploaded
    """
    user = session.query(AppUser).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError('User not found')

    uploaded = {
        doc_type for (doc_type,) in
        session.query(SellerDocument.document_type).filter_by(user_id=user_id).distinct()
    }
    for doc_type in REQUIRED_DOCUMENT_TYPES:
        if doc_type.value not in uploaded:
            raise BusinessLogicError(f'Missing required document: {doc_type.value}')

    user.verification_status = VerificationStatus.PENDING.value
    session.commit()
    logger.info(f"Seller {user_id} submitted {len(uploaded)} document types for verification")
    return user


def list_pending_sellers(session) -> List[Dict[str, Any]]:
    """Businesses awaiting review with their documents, oldest first."""
    sellers = (session.query(AppUser)
               .options(selectinload(AppUser.documents))
               .filter(
                   AppUser.account_type == AccountType.BUSINESS.value,
                   AppUser.verification_status == VerificationStatus.PENDING.value
               )
               .order_by(AppUser.created_at.asc(), AppUser.id.asc())
               .all())

    return [
        {
            'id': seller.id,
            'email': seller.email,
            'first_name': seller.first_name,
            'last_name': seller.last_name,
            'business_name': seller.business_name,
            'phone': seller.phone,
            'created_at': seller.created_at.isoformat() if seller.created_at else None,
            'verification_status': seller.verification_status,
            'documents': [doc.to_dict() for doc in seller.documents],
        }
        for seller in sellers
    ]


def verify_seller(session, user_id: int, action: str, notes: str = None, admin_id: int = None) -> AppUser:
    """
    Approve or reject a business and all of its documents.

    Raises:
        BusinessLogicError: unknown action
        NotFoundError: no business with that id
    """
    if action not in ('approve', 'reject'):
        raise BusinessLogicError('Invalid request data')

    seller = (session.query(AppUser)
              .filter_by(id=user_id, account_type=AccountType.BUSINESS.value)
              .first())
    if not seller:
        raise NotFoundError('Seller not found')

    approved = action == 'approve'
    new_status = VerificationStatus.APPROVED if approved else VerificationStatus.REJECTED

    seller.verification_status = new_status.value
    seller.is_verified = approved

    (session.query(SellerDocument)
     .filter(SellerDocument.user_id == user_id)
     .update({
         SellerDocument.verification_status: new_status.value,
         SellerDocument.admin_notes: notes or None,
     }, synchronize_session='fetch'))

    log_action(
        session,
        AuditAction.SELLER_APPROVED if approved else AuditAction.SELLER_REJECTED,
        actor_id=admin_id,
        resource_type='user',
        resource_id=seller.id,
        details={'notes': notes} if notes else None
    )
    session.commit()

    logger.info(f"Seller {user_id} {new_status.value} by admin {admin_id}")
    return seller
