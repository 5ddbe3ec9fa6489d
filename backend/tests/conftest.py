"""
Pytest fixtures for tillbook backend tests.

Provides test database setup, seeded catalog helpers, and test client.
"""

import pytest
from tillbook import create_app
from tillbook.extensions import db
from tillbook.models import Product
from tillbook.services.auth_service import ensure_default_admin


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test, with only the default admin."""
    with app.app_context():
        # Reset config toggles tests may flip
        app.config.update({
            'ALLOW_OVERSELL': False,
            'ENFORCE_CATALOG_PRICES': False,
            'LOW_STOCK_THRESHOLD': 5,
        })

        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        ensure_default_admin()
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def coffee(db_session):
    """Coffee at 3.50 with 10 in stock."""
    product = Product(name="Coffee", price=3.50, stock=10)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def bagel(db_session):
    """Bagel at 2.25 with 4 in stock (already low)."""
    product = Product(name="Bagel", price=2.25, stock=4)
    db_session.add(product)
    db_session.commit()
    return product


def stock_of(product_id: int) -> int:
    """Current stock read straight from the database."""
    db.session.expire_all()
    return db.session.get(Product, product_id).stock
