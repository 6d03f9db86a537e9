import pytest
from decimal import Decimal
import os
import tempfile
import uuid

# Tests never touch the configured database: use TEST_DATABASE_URL or a throwaway SQLite file
_test_db_dir = tempfile.mkdtemp(prefix='marketplace-tests-')
os.environ['DATABASE_URL'] = os.environ.get(
    'TEST_DATABASE_URL',
    f"sqlite:///{os.path.join(_test_db_dir, 'marketplace.db')}"
)

from marketplace import create_app
from marketplace import database
from marketplace.database import Base, get_session, create_tables
from marketplace.models import AppUser, Product, AccountType, VerificationStatus
from marketplace.services.auth_service import generate_token, Identity
from marketplace.services.pricing_service import compute_public_price


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.Config')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    create_tables()
    return app


@pytest.fixture(autouse=True)
def clean_database(app):
    """Empty every table after each test."""
    yield
    get_session().remove()
    with database.engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.remove()


def _make_user(session, account_type, verified=False, **overrides):
    suffix = str(uuid.uuid4())[:8]
    fields = dict(
        email=f'{account_type}-{suffix}@test.com',
        account_type=account_type,
        first_name=account_type.title(),
        last_name=suffix,
        address='Calle 1 #2-3',
        is_verified=verified,
        verification_status=(VerificationStatus.APPROVED if verified else VerificationStatus.PENDING).value,
        can_sell=account_type == AccountType.BUSINESS.value,
        active=True
    )
    fields.update(overrides)
    user = AppUser(**fields)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def make_user(session):
    """Factory: make_user('business', verified=True, business_name='...')."""
    def factory(account_type, verified=False, **overrides):
        return _make_user(session, account_type, verified=verified, **overrides)
    return factory


@pytest.fixture(scope='function')
def consumer(make_user):
    return make_user(AccountType.CONSUMER.value)


@pytest.fixture(scope='function')
def business(make_user):
    """Verified business allowed to sell."""
    return make_user(AccountType.BUSINESS.value, verified=True, business_name='Tienda Uno')


@pytest.fixture(scope='function')
def other_business(make_user):
    return make_user(AccountType.BUSINESS.value, verified=True, business_name='Tienda Dos')


@pytest.fixture(scope='function')
def unverified_business(make_user):
    return make_user(AccountType.BUSINESS.value, verified=False, business_name='Tienda Pendiente')


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user(AccountType.ADMIN.value, verified=True)


@pytest.fixture(scope='function')
def make_product(session):
    """Factory for products written straight to the database."""
    def factory(owner, business_price='1000', fee='15.00', stock=10, min_order=1,
                category='Frutas', name=None, is_active=True):
        suffix = str(uuid.uuid4())[:8]
        product = Product(
            business_id=owner.id,
            name=name or f'Product {suffix}',
            description='Fresh from the farm',
            business_price=Decimal(business_price),
            platform_fee_percentage=Decimal(fee),
            public_price=compute_public_price(business_price, fee),
            category=category,
            stock_quantity=stock,
            min_order_quantity=min_order,
            qr_code=f'QR_{owner.id}_{suffix}',
            is_active=is_active
        )
        session.add(product)
        session.commit()
        return product
    return factory


@pytest.fixture(scope='function')
def auth_headers(app):
    """Bearer header for a user."""
    def factory(user):
        with app.app_context():
            token = generate_token(user)
        return {'Authorization': f'Bearer {token}'}
    return factory


@pytest.fixture(scope='function')
def consumer_identity(consumer):
    return Identity(user_id=consumer.id, account_type=AccountType.CONSUMER.value)


def stock_of(session, product_id):
    """Current stock straight from the database."""
    return session.query(Product.stock_quantity).filter(Product.id == product_id).scalar()


@pytest.fixture
def stock():
    return stock_of
