"""
Shared fixtures for the OrderDesk test suite.

Run with: pytest tests/ -v

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import shutil
import tempfile

import pytest
from flask import Flask

from orderdesk import OrderDesk


def make_app(db_dir, features=None, **overrides):
    """Flask app with OrderDesk initialised against a throwaway database."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = db_dir
    # No provider keys, so AI calls use templates unless a test opts in
    app.config["OPENAI_API_KEY"] = None
    app.config["GEMINI_API_KEY"] = None
    app.config.update(overrides)

    config = {'features': features} if features else None
    OrderDesk(app, config)
    return app


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="orderdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised Flask app with all OrderDesk modules registered."""
    return make_app(tmp_db_dir)


@pytest.fixture
def app_factory(tmp_db_dir):
    """Build extra apps sharing the temp directory (feature toggles, config overrides)."""
    def factory(features=None, **overrides):
        return make_app(tmp_db_dir, features=features, **overrides)
    return factory


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    """Test client with an admin session already established."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["admin_id"] = 1
        sess["admin_email"] = "admin@example.com"
    return client


@pytest.fixture
def customer_id(app):
    """A stored customer to attach orders to."""
    from orderdesk.modules.customers import create_customer

    with app.app_context():
        return create_customer("Ada Lovelace", "ada@example.com", "555-0100", {
            "street": "12 Analytical Way",
            "city": "London",
            "country": "UK",
        })


@pytest.fixture
def order_payload(customer_id):
    """A valid create-order body for the JSON API."""
    return {
        "customer_id": customer_id,
        "payment_method": "credit_card",
        "items": [
            {"product_id": "SKU-1", "product_name": "Notebook", "quantity": 2, "price": 12.5},
            {"product_id": "SKU-2", "product_name": "Pen", "quantity": 3, "price": 1.5, "category": "stationery"},
        ],
        "shipping_address": {"street": "12 Analytical Way", "city": "London", "country": "UK"},
        "order_date": "2024-03-10T09:30:00Z",
    }
