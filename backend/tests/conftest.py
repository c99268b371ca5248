"""
Pytest fixtures for the back office tests.

Provides test database setup, a test client, and item/store/staff fixtures.
"""

import pytest
from backoffice import create_app
from backoffice.extensions import db
from backoffice.services import inventory_service, staff_service, store_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_LOG_ROUNDS': 4,
        'SALE_TOTALS_POLICY': 'record',
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
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def main_store(db_session):
    """Create the store sales are recorded against."""
    return store_service.create_store(name="Main Store", code="MAIN")


@pytest.fixture(scope='function')
def cashier(db_session, main_store):
    """Create a staff member at the main store."""
    return staff_service.create_staff(
        name="Casey Cashier",
        store_id=main_store.id,
        password="testpass123",
    )


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory: make_item(price=100, stock=100, **fields) -> Item."""
    counter = {"n": 0}

    def _make(price: int = 100, stock: int = 100, **fields):
        counter["n"] += 1
        fields.setdefault("name", f"Test Item {counter['n']}")
        fields.setdefault("code", f"TEST{counter['n']:04d}")
        return inventory_service.create_item({"price": price, "stock": stock, **fields})

    return _make


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Read an item's current stock straight from the database."""
    def _stock(item_id: int) -> int:
        db_session.expire_all()
        return inventory_service.get_item(item_id).stock

    return _stock
