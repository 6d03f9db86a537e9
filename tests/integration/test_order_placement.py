"""
Integration tests for order placement, from HTTP request to committed rows.
"""

import pytest
from contextlib import contextmanager
from decimal import Decimal

from marketplace.database import new_session
from marketplace.models import (
    Order, OrderItem, OrderStatus, BusinessPayment, BusinessReceipt, CustomerReceipt
)
from marketplace.exceptions import InsufficientStockError
from marketplace.services.auth_service import Identity
from marketplace.services.order_gateway import SqlAlchemyOrderGateway
from marketplace.services.order_service import OrderLineRequest, OrderRequest, place_order


def order_body(*lines, address='Carrera 7 #12-40'):
    return {
        'items': [{'productId': pid, 'quantity': qty} for pid, qty in lines],
        'deliveryAddress': address,
    }


def count_rows(session):
    return {
        'orders': session.query(Order).count(),
        'items': session.query(OrderItem).count(),
        'payments': session.query(BusinessPayment).count(),
        'business_receipts': session.query(BusinessReceipt).count(),
        'customer_receipts': session.query(CustomerReceipt).count(),
    }


NO_ROWS = {'orders': 0, 'items': 0, 'payments': 0, 'business_receipts': 0, 'customer_receipts': 0}


class TestPlaceOrder:
    """Test successful checkout."""

    def test_single_product_order(self, client, session, consumer, business, make_product,
                                  auth_headers, stock):
        """1000 business price, 15% fee, 2 units: customer pays 2300, business gets 2000."""
        product = make_product(business, business_price='1000', stock=10, min_order=1)

        response = client.post('/api/orders', json=order_body((product.id, 2)),
                               headers=auth_headers(consumer))

        assert response.status_code == 201
        data = response.get_json()
        assert data['total_amount'] == 2300.0
        assert data['items_count'] == 1
        assert data['business_payments_processed'] == 1

        assert stock(session, product.id) == 8

        order = session.query(Order).filter_by(id=data['order_id']).one()
        assert order.status == OrderStatus.CONFIRMED
        assert order.customer_id == consumer.id
        assert order.total_amount == Decimal('2300')

        item = session.query(OrderItem).filter_by(order_id=order.id).one()
        assert item.quantity == 2
        assert item.unit_public_price == Decimal('1150')
        assert item.business_payout == Decimal('2000')
        assert item.platform_fee == Decimal('300')

        payment = session.query(BusinessPayment).filter_by(order_id=order.id).one()
        assert payment.business_id == business.id
        assert payment.quantity_sold == 2
        assert payment.unit_business_price == Decimal('1000')
        assert payment.total_business_payment == Decimal('2000')
        assert payment.platform_fee_amount == Decimal('300')
        assert payment.payment_status == 'processed'

        receipt = session.query(CustomerReceipt).filter_by(order_id=order.id).one()
        assert receipt.total_paid == Decimal('2300')
        assert receipt.delivery_address == 'Carrera 7 #12-40'

    def test_multi_business_order(self, client, session, consumer, business, other_business,
                                  make_product, auth_headers, stock):
        first = make_product(business, business_price='1000', stock=5)
        second = make_product(other_business, business_price='2000', stock=5)

        response = client.post('/api/orders', json=order_body((first.id, 1), (second.id, 2)),
                               headers=auth_headers(consumer))

        assert response.status_code == 201
        data = response.get_json()
        assert data['total_amount'] == 1150.0 + 2 * 2300.0
        assert data['business_payments_processed'] == 2

        payments = {p.business_id: p for p in session.query(BusinessPayment).all()}
        assert payments[business.id].total_business_payment == Decimal('1000')
        assert payments[other_business.id].total_business_payment == Decimal('4000')
        assert payments[other_business.id].platform_fee_amount == Decimal('600')

        assert session.query(BusinessReceipt).count() == 2
        assert session.query(CustomerReceipt).count() == 1
        assert stock(session, first.id) == 4
        assert stock(session, second.id) == 3

    def test_same_business_lines_share_one_payment(self, client, session, consumer, business,
                                                   make_product, auth_headers):
        first = make_product(business, business_price='1000')
        second = make_product(business, business_price='500')

        response = client.post('/api/orders', json=order_body((first.id, 1), (second.id, 3)),
                               headers=auth_headers(consumer))

        assert response.status_code == 201
        payment = session.query(BusinessPayment).one()
        assert payment.quantity_sold == 4
        assert payment.unit_business_price is None
        assert payment.total_business_payment == Decimal('2500')
        assert payment.platform_fee_amount == Decimal('1150') - Decimal('1000') + 3 * (Decimal('575') - Decimal('500'))

        receipt = session.query(BusinessReceipt).one()
        assert len(receipt.items) == 2

    def test_order_for_entire_stock(self, client, session, consumer, business, make_product,
                                    auth_headers, stock):
        product = make_product(business, stock=3)

        response = client.post('/api/orders', json=order_body((product.id, 3)),
                               headers=auth_headers(consumer))

        assert response.status_code == 201
        assert stock(session, product.id) == 0

    def test_list_orders(self, client, consumer, business, make_product, auth_headers):
        product = make_product(business)
        headers = auth_headers(consumer)
        client.post('/api/orders', json=order_body((product.id, 1)), headers=headers)
        client.post('/api/orders', json=order_body((product.id, 2)), headers=headers)

        response = client.get('/api/orders', headers=headers)

        assert response.status_code == 200
        orders = response.get_json()['orders']
        assert len(orders) == 2
        assert orders[0]['total_amount'] == 2300.0
        assert all(o['status'] == 'confirmed' for o in orders)
        assert all(o['items_count'] == 1 for o in orders)


class TestRejectedOrders:
    """Rejected orders leave no rows and no stock change."""

    def test_below_minimum(self, client, session, consumer, business, make_product,
                           auth_headers, stock):
        product = make_product(business, stock=10, min_order=5)

        response = client.post('/api/orders', json=order_body((product.id, 3)),
                               headers=auth_headers(consumer))

        assert response.status_code == 400
        data = response.get_json()
        assert data['kind'] == 'BelowMinimumOrder'
        assert data['minimum'] == 5
        assert stock(session, product.id) == 10
        assert count_rows(session) == NO_ROWS

    def test_over_stock(self, client, session, consumer, business, make_product,
                        auth_headers, stock):
        product = make_product(business, stock=2)

        response = client.post('/api/orders', json=order_body((product.id, 3)),
                               headers=auth_headers(consumer))

        assert response.status_code == 409
        data = response.get_json()
        assert data['kind'] == 'InsufficientStock'
        assert data['available'] == 2
        assert stock(session, product.id) == 2
        assert count_rows(session) == NO_ROWS

    def test_one_bad_line_rejects_whole_order(self, client, session, consumer, business,
                                              make_product, auth_headers, stock):
        good = make_product(business, stock=10)
        bad = make_product(business, stock=1)

        response = client.post('/api/orders', json=order_body((good.id, 2), (bad.id, 5)),
                               headers=auth_headers(consumer))

        assert response.status_code == 409
        assert stock(session, good.id) == 10
        assert count_rows(session) == NO_ROWS

    def test_unverified_business_product(self, client, session, consumer, unverified_business,
                                         make_product, auth_headers):
        product = make_product(unverified_business)

        response = client.post('/api/orders', json=order_body((product.id, 1)),
                               headers=auth_headers(consumer))

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'ProductUnavailable'
        assert count_rows(session) == NO_ROWS

    def test_inactive_product(self, client, session, consumer, business, make_product, auth_headers):
        product = make_product(business, is_active=False)

        response = client.post('/api/orders', json=order_body((product.id, 1)),
                               headers=auth_headers(consumer))

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'ProductUnavailable'

    def test_empty_cart(self, client, session, consumer, auth_headers):
        response = client.post('/api/orders', json=order_body(), headers=auth_headers(consumer))

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'EmptyCart'
        assert count_rows(session) == NO_ROWS

    def test_missing_address(self, client, session, consumer, business, make_product, auth_headers):
        product = make_product(business)

        response = client.post('/api/orders', json=order_body((product.id, 1), address='  '),
                               headers=auth_headers(consumer))

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'MissingAddress'

    def test_invalid_item_data(self, client, consumer, auth_headers):
        response = client.post('/api/orders', json={
            'items': [{'productId': 'abc', 'quantity': 1}],
            'deliveryAddress': 'Calle 1',
        }, headers=auth_headers(consumer))

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Invalid item data'

    def test_anonymous_request(self, client, business, make_product):
        product = make_product(business)

        response = client.post('/api/orders', json=order_body((product.id, 1)))

        assert response.status_code == 401
        assert response.get_json()['kind'] == 'Unauthenticated'

    def test_business_cannot_order(self, client, session, business, make_product, auth_headers):
        product = make_product(business)

        response = client.post('/api/orders', json=order_body((product.id, 1)),
                               headers=auth_headers(business))

        assert response.status_code == 403
        assert count_rows(session) == NO_ROWS

    def test_garbage_token(self, client):
        response = client.post('/api/orders', json=order_body((1, 1)),
                               headers={'Authorization': 'Bearer not-a-token'})

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Invalid token'


class RacingOrderGateway(SqlAlchemyOrderGateway):
    """Lets a competing order commit between validation and this order's commit."""

    def __init__(self, session, competing_request, competing_identity):
        super().__init__(session)
        self.competing_request = competing_request
        self.competing_identity = competing_identity

    @contextmanager
    def unit_of_work(self):
        other_session = new_session()
        try:
            place_order(self.competing_request, SqlAlchemyOrderGateway(other_session), self.competing_identity)
        finally:
            other_session.close()

        with super().unit_of_work():
            yield self


class TestConcurrentOrders:
    """Stock taken by another order between validation and commit."""

    def test_loser_is_rolled_back(self, session, consumer, make_user, business, make_product, stock):
        product = make_product(business, stock=5)
        rival = make_user('consumer')

        mine = OrderRequest(delivery_address='Calle 1', lines=(OrderLineRequest(product.id, 4),))
        theirs = OrderRequest(delivery_address='Calle 2', lines=(OrderLineRequest(product.id, 3),))
        gateway = RacingOrderGateway(session, theirs, Identity(rival.id, 'consumer'))

        with pytest.raises(InsufficientStockError):
            place_order(mine, gateway, Identity(consumer.id, 'consumer'))

        assert stock(session, product.id) == 2
        orders = session.query(Order).all()
        assert len(orders) == 1
        assert orders[0].customer_id == rival.id
        assert session.query(BusinessPayment).count() == 1
        assert session.query(CustomerReceipt).count() == 1

    def test_both_fit(self, session, consumer, make_user, business, make_product, stock):
        product = make_product(business, stock=10)
        rival = make_user('consumer')

        mine = OrderRequest(delivery_address='Calle 1', lines=(OrderLineRequest(product.id, 4),))
        theirs = OrderRequest(delivery_address='Calle 2', lines=(OrderLineRequest(product.id, 3),))
        gateway = RacingOrderGateway(session, theirs, Identity(rival.id, 'consumer'))

        result = place_order(mine, gateway, Identity(consumer.id, 'consumer'))

        assert result.total_amount == Decimal('4600')
        assert stock(session, product.id) == 3
        assert session.query(Order).count() == 2
