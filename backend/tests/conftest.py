"""
Pytest fixtures for shop POS backend tests.

Provides test database setup, an authenticated user, and a product factory.
"""

import pytest
from shoppos import create_app
from shoppos.extensions import db
from shoppos.models import Product, User
from shoppos.services.auth_service import hash_password
from shoppos.services.cart_service import TerminalRegistry

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SHOP_TIMEZONE': 'UTC',
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
    """Create fresh database (and fresh tills) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        app.extensions["pos_terminals"] = TerminalRegistry(app.config["SCAN_KEY_GAP_MS"])
        app.extensions.pop("text_recognizer", None)

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def user(db_session):
    """Active operator account (low bcrypt cost to keep tests fast)."""
    u = User(
        email="owner@shop.test",
        password_hash=hash_password(TEST_PASSWORD, rounds=4),
    )
    db_session.add(u)
    db_session.commit()
    return u


@pytest.fixture(scope='function')
def auth_headers(client, user):
    return auth_headers_for(get_auth_token(client, user.email, TEST_PASSWORD))


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name=..., barcode=..., price_cents=..., quantity=...)."""
    counter = {"n": 0}

    def _make(name=None, barcode=None, price_cents=1000, cost_price_cents=500, quantity=10, sold=0):
        counter["n"] += 1
        p = Product(
            name=name or f"Product {counter['n']}",
            barcode=barcode or f"ACC-TEST{counter['n']:05d}",
            price_cents=price_cents,
            cost_price_cents=cost_price_cents,
            quantity=quantity,
            sold=sold,
        )
        db_session.add(p)
        db_session.commit()
        return p

    return _make


@pytest.fixture(scope='function')
def recognizer(app, db_session):
    """Swap the OCR collaborator for one that returns canned text."""
    state = {"text": "", "calls": []}

    def _recognize(stream, languages):
        state["calls"].append(languages)
        return state["text"]

    app.extensions["text_recognizer"] = _recognize
    return state


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers_for(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
