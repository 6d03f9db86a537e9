"""
Unit tests for order placement against an in-memory gateway.
"""

import pytest
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from marketplace.models import AppUser, Product, OrderStatus
from marketplace.exceptions import (
    BusinessLogicError, EmptyCartError, MissingAddressError, ProductUnavailableError,
    BelowMinimumOrderError, InsufficientStockError, OrderProcessingFailedError,
    UnauthenticatedError, ForbiddenError
)
from marketplace.services.auth_service import Identity
from marketplace.services.order_service import (
    OrderLineRequest, OrderRequest, parse_order_request, place_order
)

CONSUMER = Identity(user_id=1, account_type='consumer')


class FakeOrderGateway:
    """Records writes; commits or discards them with the unit of work."""

    def __init__(self, products):
        self.products = {p.id: p for p in products}
        self.stock = {p.id: p.stock_quantity for p in products}
        self.pending = []
        self.committed = []
        self.rollbacks = 0
        self.fail_decrement_for = set()
        self.fail_on = None
        self._next_order_id = 100

    def get_product(self, product_id):
        return self.products.get(product_id)

    @contextmanager
    def unit_of_work(self):
        saved_stock = dict(self.stock)
        try:
            yield self
            self.committed.extend(self.pending)
            self.pending = []
        except Exception:
            self.pending = []
            self.stock = saved_stock
            self.rollbacks += 1
            raise

    def _record(self, kind, value):
        if self.fail_on == kind:
            raise RuntimeError(f'{kind} write failed')
        self.pending.append((kind, value))
        return value

    def atomic_decrement_stock(self, product_id, quantity):
        if product_id in self.fail_decrement_for or self.stock[product_id] < quantity:
            return False
        self.stock[product_id] -= quantity
        return True

    def insert_order(self, customer_id, delivery_address, total_amount):
        self._next_order_id += 1
        order = SimpleNamespace(
            id=self._next_order_id,
            customer_id=customer_id,
            delivery_address=delivery_address,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
            created_at=datetime.now(timezone.utc)
        )
        return self._record('order', order)

    def insert_order_line(self, order_id, line):
        return self._record('line', line)

    def insert_business_payment(self, order_id, business_id, lines):
        return self._record('payment', (business_id, lines))

    def insert_receipt(self, kind, payload):
        return self._record(f'receipt:{kind.value}', payload)

    def mark_order_confirmed(self, order):
        order.status = OrderStatus.CONFIRMED

    def written(self, kind):
        return [value for k, value in self.committed if k == kind]


def make_product(product_id, business_id=10, business_price='1000', public_price='1150',
                 stock=10, min_order=1, verified=True, is_active=True):
    business = AppUser(id=business_id, account_type='business', is_verified=verified)
    return Product(
        id=product_id,
        business_id=business_id,
        business=business,
        name=f'Product {product_id}',
        business_price=Decimal(business_price),
        public_price=Decimal(public_price),
        stock_quantity=stock,
        min_order_quantity=min_order,
        is_active=is_active
    )


def order_for(*lines, address='Calle 10 #5-20'):
    return OrderRequest(
        delivery_address=address,
        lines=tuple(OrderLineRequest(product_id=pid, quantity=qty) for pid, qty in lines)
    )


class TestPlaceOrder:
    """Test the happy path and the money written with it."""

    def test_single_line_order(self):
        gateway = FakeOrderGateway([make_product(1)])

        result = place_order(order_for((1, 2)), gateway, CONSUMER)

        assert result.total_amount == Decimal('2300')
        assert result.items_count == 1
        assert result.business_payments_processed == 1
        assert gateway.stock[1] == 8

        order = gateway.written('order')[0]
        assert order.status == OrderStatus.CONFIRMED
        assert order.total_amount == Decimal('2300')

        business_receipt = gateway.written('receipt:business')[0]
        assert business_receipt['total_earned'] == Decimal('2000')
        assert business_receipt['platform_fee_deducted'] == Decimal('300')

        customer_receipt = gateway.written('receipt:customer')[0]
        assert customer_receipt['total_paid'] == Decimal('2300')
        assert customer_receipt['items'][0]['quantity'] == 2

    def test_one_payment_per_business(self):
        gateway = FakeOrderGateway([
            make_product(1, business_id=10),
            make_product(2, business_id=10, business_price='500', public_price='575'),
            make_product(3, business_id=20),
        ])

        result = place_order(order_for((1, 1), (2, 2), (3, 1)), gateway, CONSUMER)

        assert result.business_payments_processed == 2
        payments = dict(gateway.written('payment'))
        assert sorted(payments) == [10, 20]
        assert len(payments[10]) == 2
        assert len(gateway.written('receipt:business')) == 2
        assert len(gateway.written('receipt:customer')) == 1
        assert result.total_amount == Decimal('1150') + Decimal('1150') + Decimal('1150')

    def test_duplicate_lines_are_merged(self):
        gateway = FakeOrderGateway([make_product(1, min_order=3)])

        result = place_order(order_for((1, 2), (1, 2)), gateway, CONSUMER)

        assert result.items_count == 1
        assert gateway.written('line')[0].quantity == 4
        assert gateway.stock[1] == 6

    def test_address_is_trimmed(self):
        gateway = FakeOrderGateway([make_product(1)])
        place_order(order_for((1, 1), address='  Calle 3  '), gateway, CONSUMER)
        assert gateway.written('order')[0].delivery_address == 'Calle 3'


class TestPlaceOrderRejections:
    """Validation failures must not write anything."""

    def test_anonymous_caller(self):
        gateway = FakeOrderGateway([make_product(1)])
        with pytest.raises(UnauthenticatedError):
            place_order(order_for((1, 1)), gateway, None)

    @pytest.mark.parametrize('account_type', ['business', 'admin'])
    def test_non_consumer_caller(self, account_type):
        gateway = FakeOrderGateway([make_product(1)])
        with pytest.raises(ForbiddenError):
            place_order(order_for((1, 1)), gateway, Identity(user_id=2, account_type=account_type))
        assert gateway.committed == []

    def test_empty_cart(self):
        gateway = FakeOrderGateway([])
        with pytest.raises(EmptyCartError):
            place_order(order_for(), gateway, CONSUMER)
        assert gateway.committed == []

    @pytest.mark.parametrize('address', ['', '   '])
    def test_missing_address(self, address):
        gateway = FakeOrderGateway([make_product(1)])
        with pytest.raises(MissingAddressError):
            place_order(order_for((1, 1), address=address), gateway, CONSUMER)
        assert gateway.committed == []

    def test_empty_cart_reported_before_missing_address(self):
        with pytest.raises(EmptyCartError):
            place_order(order_for(address=''), FakeOrderGateway([]), CONSUMER)

    def test_unknown_product(self):
        gateway = FakeOrderGateway([make_product(1)])
        with pytest.raises(ProductUnavailableError):
            place_order(order_for((1, 1), (404, 1)), gateway, CONSUMER)
        assert gateway.committed == []
        assert gateway.stock[1] == 10

    def test_below_minimum(self):
        gateway = FakeOrderGateway([make_product(1, min_order=5)])
        with pytest.raises(BelowMinimumOrderError):
            place_order(order_for((1, 4)), gateway, CONSUMER)
        assert gateway.committed == []

    def test_over_stock(self):
        gateway = FakeOrderGateway([make_product(1, stock=3)])
        with pytest.raises(InsufficientStockError):
            place_order(order_for((1, 4)), gateway, CONSUMER)
        assert gateway.committed == []
        assert gateway.rollbacks == 0


class TestCommitFailures:
    """Failures inside the unit of work roll everything back."""

    def test_stock_taken_before_commit(self):
        gateway = FakeOrderGateway([make_product(1), make_product(2)])
        gateway.fail_decrement_for.add(2)

        with pytest.raises(InsufficientStockError) as exc:
            place_order(order_for((1, 1), (2, 1)), gateway, CONSUMER)

        assert exc.value.product_id == 2
        assert gateway.committed == []
        assert gateway.rollbacks == 1
        assert gateway.stock == {1: 10, 2: 10}

    @pytest.mark.parametrize('failing_write', ['order', 'line', 'payment', 'receipt:customer'])
    def test_write_failure_becomes_processing_failed(self, failing_write):
        gateway = FakeOrderGateway([make_product(1)])
        gateway.fail_on = failing_write

        with pytest.raises(OrderProcessingFailedError) as exc:
            place_order(order_for((1, 1)), gateway, CONSUMER)

        assert exc.value.status_code == 500
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert gateway.committed == []
        assert gateway.stock[1] == 10


class TestParseOrderRequest:
    """Test request body parsing."""

    def test_camel_case_body(self):
        request = parse_order_request({
            'items': [{'productId': 3, 'quantity': 2}],
            'deliveryAddress': ' Calle 1 ',
        })
        assert request.lines == (OrderLineRequest(product_id=3, quantity=2),)
        assert request.delivery_address == 'Calle 1'

    def test_snake_case_body(self):
        request = parse_order_request({
            'lines': [{'product_id': '3', 'quantity': '2'}],
            'delivery_address': 'Calle 1',
        })
        assert request.lines == (OrderLineRequest(product_id=3, quantity=2),)

    def test_missing_items_parse_as_empty(self):
        request = parse_order_request({'delivery_address': 'Calle 1'})
        assert request.lines == ()

    @pytest.mark.parametrize('item', [
        {'productId': 1, 'quantity': 0},
        {'productId': 1, 'quantity': -2},
        {'productId': 1, 'quantity': 2.5},
        {'productId': 1, 'quantity': True},
        {'productId': None, 'quantity': 1},
        {'quantity': 1},
        'not-an-item',
    ])
    def test_invalid_item(self, item):
        with pytest.raises(BusinessLogicError, match='Invalid item data'):
            parse_order_request({'items': [item], 'deliveryAddress': 'Calle 1'})

    def test_non_object_body(self):
        with pytest.raises(BusinessLogicError):
            parse_order_request(None)
