"""
Pytest fixtures for LedgerPOS backend tests.

Provides the test app on in-memory SQLite, a per-test table wipe, store /
staff / product / customer factories and the Flask test client.
"""

import pytest

from ledgerpos import create_app
from ledgerpos.extensions import db, record_cache
from ledgerpos.models import Customer, Product, Staff, Store
from ledgerpos.services import credit_ledger, stock_ledger


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DB_RETRY_BACKOFF_SECONDS': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Core deletes bypass the ledger immutability listener
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        record_cache.clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    store = Store(name="Main Store", code="MAIN")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def other_store(db_session):
    store = Store(name="Harbour Kiosk", code="HARB")
    db_session.add(store)
    db_session.commit()
    return store


def _make_staff(db_session, store, name, role):
    staff = Staff(store_id=store.id, name=name, role=role)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def owner(db_session, store):
    return _make_staff(db_session, store, "Olivia Owner", "owner")


@pytest.fixture(scope='function')
def manager(db_session, store):
    return _make_staff(db_session, store, "Marco Manager", "manager")


@pytest.fixture(scope='function')
def cashier(db_session, store):
    return _make_staff(db_session, store, "Cara Cashier", "cashier")


@pytest.fixture(scope='function')
def second_cashier(db_session, store):
    return _make_staff(db_session, store, "Cody Cashier", "cashier")


@pytest.fixture(scope='function')
def make_product(db_session, store):
    """Factory: product with opening stock received through the stock ledger."""
    def _make(name="Flat White", price_cents=450, stock=10, min_stock_level=0, store_id=None, status="active", barcode=None):
        product = Product(
            store_id=store_id or store.id,
            name=name,
            price_cents=price_cents,
            min_stock_level=min_stock_level,
            status=status,
            barcode=barcode,
        )
        db_session.add(product)
        db_session.commit()
        if stock:
            stock_ledger.receive_stock(product.id, stock, reason="Opening stock")
        return product
    return _make


@pytest.fixture(scope='function')
def product(make_product):
    return make_product()


@pytest.fixture(scope='function')
def make_customer(db_session, store):
    """Factory: customer with an optional opening balance posted as a charge."""
    def _make(name="Dana Regular", credit_limit_cents=10000, balance_cents=0, **kwargs):
        customer = Customer(store_id=store.id, name=name, credit_limit_cents=credit_limit_cents, **kwargs)
        db_session.add(customer)
        db_session.commit()
        if balance_cents:
            credit_ledger.append_charge(customer.id, balance_cents, description="Opening balance")
            db_session.commit()
        return customer
    return _make


@pytest.fixture(scope='function')
def customer(make_customer):
    return make_customer()


def staff_headers(staff):
    return {"X-Staff-Id": str(staff.id)}


@pytest.fixture(scope='function')
def cashier_headers(cashier):
    return staff_headers(cashier)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return staff_headers(manager)
