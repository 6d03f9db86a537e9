"""
Order placement service.

Validates a cart against live inventory, prices every line and records the
order, its items, stock decrements, business payments and receipts in a
single transaction.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Dict, Any, Tuple
import logging

from sqlalchemy import func

from marketplace.models import (
    Order, OrderItem, OrderStatus, ReceiptKind, AuditAction, AccountType
)
from marketplace.exceptions import (
    MarketplaceError, BusinessLogicError, NotFoundError, EmptyCartError,
    MissingAddressError, InsufficientStockError, OrderProcessingFailedError,
    InvalidStatusTransitionError, UnauthenticatedError, ForbiddenError
)
from marketplace.services.inventory_service import validate_line
from marketplace.services.pricing_service import compute_line_split, LineSplit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLineRequest:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class OrderRequest:
    delivery_address: str
    lines: Tuple[OrderLineRequest, ...]


@dataclass(frozen=True)
class PricedLine:
    """A validated line with the prices charged at checkout."""
    product_id: int
    business_id: int
    product_name: str
    quantity: int
    unit_public_price: Decimal
    unit_business_price: Decimal
    split: LineSplit


@dataclass(frozen=True)
class OrderResult:
    order_id: int
    total_amount: Decimal
    items_count: int
    business_payments_processed: int

    def to_dict(self):
        return {
            'order_id': self.order_id,
            'total_amount': float(self.total_amount),
            'items_count': self.items_count,
            'business_payments_processed': self.business_payments_processed,
        }


def _parse_positive_int(value) -> int:
    # bool is an int subclass; reject it along with floats like 2.5
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValueError(value)
    if parsed < 1:
        raise ValueError(value)
    return parsed


def parse_order_request(payload: Any) -> OrderRequest:
    """
    Turn a JSON body into a typed OrderRequest.

    Accepts `items` (or `lines`) with `productId`/`product_id` and
    `quantity`, plus `deliveryAddress`/`delivery_address`.
    Emptiness and address checks belong to place_order.
    """
    if not isinstance(payload, dict):
        raise BusinessLogicError('Request body must be a JSON object')

    raw_items = payload.get('items', payload.get('lines'))
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise BusinessLogicError('Items must be a list')

    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise BusinessLogicError('Invalid item data')
        try:
            product_id = _parse_positive_int(raw.get('productId', raw.get('product_id')))
            quantity = _parse_positive_int(raw.get('quantity'))
        except ValueError:
            raise BusinessLogicError('Invalid item data', payload={'item': raw})
        lines.append(OrderLineRequest(product_id=product_id, quantity=quantity))

    address = payload.get('deliveryAddress', payload.get('delivery_address')) or ''
    if not isinstance(address, str):
        raise BusinessLogicError('Delivery address must be text')

    return OrderRequest(delivery_address=address.strip(), lines=tuple(lines))


def _merge_duplicate_lines(lines) -> List[OrderLineRequest]:
    """Sum quantities of repeated products, keeping first-seen order."""
    merged = {}
    for line in lines:
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return [OrderLineRequest(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def _group_by_business(lines: List[PricedLine]) -> Dict[int, List[PricedLine]]:
    groups = {}
    for line in lines:
        groups.setdefault(line.business_id, []).append(line)
    return groups


def _price_lines(gateway, lines: List[OrderLineRequest]) -> Tuple[List[PricedLine], Decimal]:
    """Validate every line (all-or-nothing) and compute its split."""
    priced_lines = []
    total_amount = Decimal('0')

    for line in lines:
        product = gateway.get_product(line.product_id)
        validate_line(product, line.quantity, product_id=line.product_id)

        # Price is taken at checkout, not when the item was added to the cart
        split = compute_line_split(product.business_price, product.public_price, line.quantity)
        priced_lines.append(PricedLine(
            product_id=product.id,
            business_id=product.business_id,
            product_name=product.name,
            quantity=line.quantity,
            unit_public_price=Decimal(product.public_price),
            unit_business_price=Decimal(product.business_price),
            split=split
        ))
        total_amount += split.total

    return priced_lines, total_amount


def _business_receipt_payload(order_id: int, business_id: int, lines: List[PricedLine]) -> dict:
    total_earned = sum((line.split.business_payout for line in lines), Decimal('0'))
    platform_fee = sum((line.split.platform_fee for line in lines), Decimal('0'))
    return {
        'order_id': order_id,
        'business_id': business_id,
        'items': [
            {
                'product_id': line.product_id,
                'product_name': line.product_name,
                'quantity_sold': line.quantity,
                'business_unit_price': str(line.unit_business_price),
                'total_earned': str(line.split.business_payout),
                'platform_fee_deducted': str(line.split.platform_fee),
            }
            for line in lines
        ],
        'total_earned': total_earned,
        'platform_fee_deducted': platform_fee,
        'net_payment': total_earned,
    }


def _customer_receipt_payload(order: Order, lines: List[PricedLine]) -> dict:
    return {
        'order_id': order.id,
        'customer_id': order.customer_id,
        'items': [
            {
                'name': line.product_name,
                'quantity': line.quantity,
                'unit_price': str(line.unit_public_price),
                'total': str(line.split.total),
            }
            for line in lines
        ],
        'total_paid': order.total_amount,
        'delivery_address': order.delivery_address,
        'order_date': order.created_at,
    }


def place_order(order_request: OrderRequest, gateway, identity) -> OrderResult:
    """
    Place an order for the authenticated consumer.

    Validation failures leave no trace. During the commit phase a rejected
    conditional stock decrement raises InsufficientStockError; any other
    failure rolls everything back and raises OrderProcessingFailedError.
    """
    if identity is None:
        raise UnauthenticatedError()
    if identity.account_type != AccountType.CONSUMER.value:
        raise ForbiddenError('Only consumers can place orders')

    if not order_request.lines:
        raise EmptyCartError()
    if not (order_request.delivery_address or '').strip():
        raise MissingAddressError()

    lines = _merge_duplicate_lines(order_request.lines)
    priced_lines, total_amount = _price_lines(gateway, lines)
    by_business = _group_by_business(priced_lines)

    try:
        with gateway.unit_of_work():
            order = gateway.insert_order(identity.user_id, order_request.delivery_address.strip(), total_amount)

            for line in priced_lines:
                gateway.insert_order_line(order.id, line)
                if not gateway.atomic_decrement_stock(line.product_id, line.quantity):
                    raise InsufficientStockError(line.product_id, line.product_name, line.quantity)

            for business_id, business_lines in by_business.items():
                gateway.insert_business_payment(order.id, business_id, business_lines)
                gateway.insert_receipt(
                    ReceiptKind.BUSINESS,
                    _business_receipt_payload(order.id, business_id, business_lines)
                )

            gateway.insert_receipt(ReceiptKind.CUSTOMER, _customer_receipt_payload(order, priced_lines))
            gateway.mark_order_confirmed(order)
            order_id = order.id

    except InsufficientStockError as e:
        logger.warning(f"Stock changed before commit for product {e.product_id}; order rolled back")
        raise
    except MarketplaceError:
        raise
    except Exception as e:
        logger.error(f"Order processing failed for customer {identity.user_id}: {e}", exc_info=True)
        raise OrderProcessingFailedError() from e

    logger.info(
        f"Order {order_id} confirmed for customer {identity.user_id}: "
        f"total={total_amount}, lines={len(priced_lines)}, businesses={len(by_business)}"
    )
    return OrderResult(
        order_id=order_id,
        total_amount=total_amount,
        items_count=len(priced_lines),
        business_payments_processed=len(by_business)
    )


def list_customer_orders(session, customer_id: int) -> List[Dict[str, Any]]:
    """Orders of one customer, newest first, with their item counts."""
    rows = (session.query(Order, func.count(OrderItem.id))
            .outerjoin(OrderItem, OrderItem.order_id == Order.id)
            .filter(Order.customer_id == customer_id)
            .group_by(Order.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all())

    return [
        {
            'id': order.id,
            'total_amount': float(order.total_amount),
            'delivery_address': order.delivery_address,
            'status': order.status.value,
            'created_at': order.created_at.isoformat() if order.created_at else None,
            'items_count': int(items_count),
        }
        for order, items_count in rows
    ]


def advance_order_status(session, order_id: int, new_status: str, actor_id: int = None) -> Order:
    """
    Move an order along its lifecycle.

    pending -> confirmed -> processing -> shipped -> delivered, or
    cancelled from any non-terminal state.
    """
    try:
        target = OrderStatus(new_status)
    except ValueError:
        raise BusinessLogicError(f'Unknown order status: {new_status}')

    order = session.query(Order).filter_by(id=order_id).first()
    if not order:
        raise NotFoundError(f'Order {order_id} not found')

    if not order.can_transition_to(target):
        raise InvalidStatusTransitionError(order.status.value, target.value)

    previous = order.status
    order.status = target

    from marketplace.services.audit_service import log_action
    log_action(
        session,
        AuditAction.ORDER_STATUS_CHANGED,
        actor_id=actor_id,
        resource_type='order',
        resource_id=order.id,
        details={'from': previous.value, 'to': target.value}
    )
    session.commit()

    logger.info(f"Order {order.id} moved from {previous.value} to {target.value}")
    return order
