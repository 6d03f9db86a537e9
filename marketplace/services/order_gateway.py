"""
Persistence gateway used by order placement.

Wraps one SQLAlchemy session. Every write for an order goes through the
same session and is committed or rolled back as one unit of work.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List
import logging

from sqlalchemy import update
from sqlalchemy.orm import joinedload

from marketplace.models import (
    Product, Order, OrderItem, OrderStatus, BusinessPayment, PaymentStatus,
    BusinessReceipt, CustomerReceipt, ReceiptKind
)

logger = logging.getLogger(__name__)


class SqlAlchemyOrderGateway:
    """Order persistence over a SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def get_product(self, product_id: int) -> Optional[Product]:
        """Load a product with its owning business (needed for the verification check)."""
        return (self.session.query(Product)
                .options(joinedload(Product.business))
                .filter(Product.id == product_id)
                .first())

    def atomic_decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Conditionally take `quantity` units out of stock.

        Returns False when the row no longer has enough stock; nothing is
        changed in that case.
        """
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
        )
        return result.rowcount == 1

    @contextmanager
    def unit_of_work(self):
        """Commit everything written inside the block, or nothing."""
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def insert_order(self, customer_id: int, delivery_address: str, total_amount: Decimal) -> Order:
        order = Order(
            customer_id=customer_id,
            delivery_address=delivery_address,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
            created_at=datetime.now(timezone.utc)
        )
        self.session.add(order)
        self.session.flush()
        return order

    def insert_order_line(self, order_id: int, line) -> OrderItem:
        item = OrderItem(
            order_id=order_id,
            product_id=line.product_id,
            business_id=line.business_id,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_public_price=line.unit_public_price,
            unit_business_price=line.unit_business_price,
            line_total=line.split.total,
            business_payout=line.split.business_payout,
            platform_fee=line.split.platform_fee
        )
        self.session.add(item)
        return item

    def insert_business_payment(self, order_id: int, business_id: int, lines: List) -> BusinessPayment:
        unit_price = lines[0].unit_business_price if len(lines) == 1 else None
        payment = BusinessPayment(
            order_id=order_id,
            business_id=business_id,
            quantity_sold=sum(line.quantity for line in lines),
            unit_business_price=unit_price,
            total_business_payment=sum((line.split.business_payout for line in lines), Decimal('0')),
            platform_fee_amount=sum((line.split.platform_fee for line in lines), Decimal('0')),
            payment_status=PaymentStatus.PROCESSED.value,
            processed_at=datetime.now(timezone.utc)
        )
        self.session.add(payment)
        return payment

    def insert_receipt(self, kind: ReceiptKind, payload: dict):
        if kind == ReceiptKind.BUSINESS:
            receipt = BusinessReceipt(
                order_id=payload['order_id'],
                business_id=payload['business_id'],
                receipt_number=f"BR-{payload['order_id']}-{payload['business_id']}",
                items=payload['items'],
                total_earned=payload['total_earned'],
                platform_fee_deducted=payload['platform_fee_deducted'],
                net_payment=payload['net_payment']
            )
        elif kind == ReceiptKind.CUSTOMER:
            receipt = CustomerReceipt(
                order_id=payload['order_id'],
                customer_id=payload['customer_id'],
                receipt_number=f"CR-{payload['order_id']}",
                items=payload['items'],
                total_paid=payload['total_paid'],
                delivery_address=payload['delivery_address'],
                order_date=payload.get('order_date')
            )
        else:
            raise ValueError(f"Unknown receipt kind: {kind}")

        self.session.add(receipt)
        return receipt

    def mark_order_confirmed(self, order: Order) -> None:
        order.status = OrderStatus.CONFIRMED
        self.session.flush()
