"""Business payment reporting."""
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import List, Dict, Any
import logging

from sqlalchemy import func

from marketplace.models import BusinessPayment, OrderItem, PaymentStatus

logger = logging.getLogger(__name__)


def get_today_datetime_range(now: datetime = None):
    """Start and end of the current UTC day."""
    now = now or datetime.now(timezone.utc)
    start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    end = datetime.combine(now.date(), time.max, tzinfo=timezone.utc)
    return start, end


def _product_names_by_order(session, business_id: int, order_ids: List[int]) -> Dict[int, List[str]]:
    """Names of the products a business sold in each order, in line order."""
    if not order_ids:
        return {}

    rows = (session.query(OrderItem.order_id, OrderItem.product_name)
            .filter(OrderItem.business_id == business_id, OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.order_id, OrderItem.id)
            .all())

    names = {}
    for order_id, product_name in rows:
        names.setdefault(order_id, []).append(product_name)
    return names


def get_business_payments(session, business_id: int, recent_limit: int = 50) -> Dict[str, Any]:
    """Summary, today's figures and the most recent processed payouts of a business."""
    processed = session.query(BusinessPayment).filter(
        BusinessPayment.business_id == business_id,
        BusinessPayment.payment_status == PaymentStatus.PROCESSED.value
    )

    count, total_earned, total_fees, items_sold = processed.with_entities(
        func.count(BusinessPayment.id),
        func.coalesce(func.sum(BusinessPayment.total_business_payment), 0),
        func.coalesce(func.sum(BusinessPayment.platform_fee_amount), 0),
        func.coalesce(func.sum(BusinessPayment.quantity_sold), 0)
    ).one()

    start, end = get_today_datetime_range()
    today_earnings, today_items = processed.filter(
        BusinessPayment.processed_at >= start,
        BusinessPayment.processed_at <= end
    ).with_entities(
        func.coalesce(func.sum(BusinessPayment.total_business_payment), 0),
        func.coalesce(func.sum(BusinessPayment.quantity_sold), 0)
    ).one()

    recent = (processed
              .order_by(BusinessPayment.processed_at.desc(), BusinessPayment.id.desc())
              .limit(recent_limit)
              .all())
    product_names = _product_names_by_order(session, business_id, [payment.order_id for payment in recent])

    return {
        'summary': {
            'total_payments': int(count),
            'total_earned': float(Decimal(str(total_earned))),
            'total_fees': float(Decimal(str(total_fees))),
            'total_items_sold': int(items_sold),
        },
        'today_stats': {
            'today_earnings': float(Decimal(str(today_earnings))),
            'today_items_sold': int(today_items),
        },
        'payments': [
            {**payment.to_dict(), 'product_names': product_names.get(payment.order_id, [])}
            for payment in recent
        ],
    }
