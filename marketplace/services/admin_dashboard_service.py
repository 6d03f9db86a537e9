"""Admin dashboard figures."""
from typing import Dict, Any

from sqlalchemy import func

from marketplace.models import (
    AppUser, Product, Order, OrderStatus, BusinessPayment, AccountType, VerificationStatus
)


def get_dashboard_stats(session) -> Dict[str, Any]:
    """Platform-wide counters for the approval dashboard."""
    users_by_type = dict(
        session.query(AppUser.account_type, func.count(AppUser.id))
        .group_by(AppUser.account_type)
        .all()
    )

    pending_sellers = session.query(func.count(AppUser.id)).filter(
        AppUser.account_type == AccountType.BUSINESS.value,
        AppUser.verification_status == VerificationStatus.PENDING.value
    ).scalar()

    active_products = session.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar()

    orders_by_status = {
        status.value: count
        for status, count in session.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
    }

    platform_revenue = session.query(
        func.coalesce(func.sum(BusinessPayment.platform_fee_amount), 0)
    ).join(Order, Order.id == BusinessPayment.order_id).filter(
        Order.status != OrderStatus.CANCELLED
    ).scalar()

    return {
        'users': {t.value: int(users_by_type.get(t.value, 0)) for t in AccountType},
        'pending_sellers': int(pending_sellers or 0),
        'active_products': int(active_products or 0),
        'orders': {s.value: int(orders_by_status.get(s.value, 0)) for s in OrderStatus},
        'platform_revenue': float(platform_revenue or 0),
    }
