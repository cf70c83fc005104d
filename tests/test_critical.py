"""
Critical Integration Tests for OrderDesk
========================================

Focused tests covering the integration points most likely to break.
Run with: pytest tests/test_critical.py -v
"""

import os
import shutil
import sqlite3
import tempfile
from unittest.mock import patch

from flask import Flask

from orderdesk import OrderDesk


# ---------------------------------------------------------------------------
# 1. Extension initialisation -- OrderDesk(app) does not raise
# ---------------------------------------------------------------------------

def test_extension_initialisation(tmp_db_dir):
    """OrderDesk(app) boots without errors and stores itself on the app."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["OPENAI_API_KEY"] = None
    app.config["GEMINI_API_KEY"] = None

    orderdesk = OrderDesk(app)

    assert "orderdesk" in app.extensions
    assert app.extensions["orderdesk"] is orderdesk


# ---------------------------------------------------------------------------
# 2. Config resolution -- host values win, defaults fill the gaps
# ---------------------------------------------------------------------------

def test_config_db_path_follows_db_dir(app, tmp_db_dir):
    """ORDERS_DB is placed inside the host's DB_DIR."""
    assert app.config["ORDERS_DB"] == os.path.join(tmp_db_dir, "orders.db")
    assert os.path.exists(app.config["ORDERS_DB"])


def test_config_host_values_not_overridden(app_factory):
    """Values set before OrderDesk(app) survive initialisation."""
    app = app_factory(ORDERS_PER_PAGE=25, BRAND_NAME="Corner Shop")
    assert app.config["ORDERS_PER_PAGE"] == 25
    assert app.config["BRAND_NAME"] == "Corner Shop"
    # Unset keys are seeded from Config
    assert app.config["BULK_ORDER_LIMIT"] == 500


# ---------------------------------------------------------------------------
# 3. Blueprint registration -- every feature module is registered
# ---------------------------------------------------------------------------

EXPECTED_MODULES = ["dashboard", "orders", "ai", "ops"]


def test_all_blueprints_registered(app):
    """All feature modules should be registered as blueprints."""
    registered = app.extensions["orderdesk"].get_registered_modules()

    for mod in EXPECTED_MODULES:
        assert mod in registered, (
            f"Module '{mod}' was not registered. Registered: {registered}"
        )
    assert len(registered) == len(EXPECTED_MODULES)

    rules = {rule.rule for rule in app.url_map.iter_rules()}
    for rule in ("/admin/login", "/admin/orders/", "/api/orders", "/api/ai/suggest-message", "/health"):
        assert rule in rules, f"{rule} missing. Routes: {sorted(rules)}"


def test_feature_can_be_disabled(app_factory):
    """A feature switched off in config is not registered."""
    app = app_factory(features={'ai': False})
    registered = app.extensions["orderdesk"].get_registered_modules()

    assert "ai" not in registered
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    assert "/api/ai/suggest-message" not in rules


# ---------------------------------------------------------------------------
# 4. Template context -- orderdesk_config and brand_name are injected
# ---------------------------------------------------------------------------

def test_template_context_injection(app):
    """Context processor injects orderdesk_config and brand_name."""
    with app.test_request_context("/"):
        ctx = {}
        for func in app.template_context_processors[None]:
            ctx.update(func())

        assert "orderdesk_config" in ctx, "orderdesk_config missing from template context"
        assert "brand_name" in ctx, "brand_name missing from template context"
        assert isinstance(ctx["orderdesk_config"], dict)
        assert isinstance(ctx["brand_name"], str)
        assert len(ctx["brand_name"]) > 0


# ---------------------------------------------------------------------------
# 5. Database directory creation -- init_app creates the dir and schema
# ---------------------------------------------------------------------------

def test_database_dir_creation():
    """OrderDesk(app) creates the configured DB_DIR and its tables."""
    d = tempfile.mkdtemp(prefix="orderdesk-dbtest-")
    target = os.path.join(d, "sub", "databases")

    try:
        app = Flask(__name__)
        app.config["TESTING"] = True
        app.config["SECRET_KEY"] = "test-secret"
        app.config["DB_DIR"] = target
        app.config["OPENAI_API_KEY"] = None
        app.config["GEMINI_API_KEY"] = None

        OrderDesk(app)

        assert os.path.isdir(target), f"DB_DIR was not created at {target}"
        with sqlite3.connect(os.path.join(target, "orders.db")) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        for table in ("admin", "customers", "orders", "order_items", "app_logs"):
            assert table in tables
    finally:
        shutil.rmtree(d, ignore_errors=True)


# ---------------------------------------------------------------------------
# 6. Health endpoint -- GET /health returns status and checks
# ---------------------------------------------------------------------------

def test_health_endpoint(client):
    """GET /health needs no auth and reports database and AI checks."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.get_json()
    assert data["status"] == "ok"
    assert data["checks"]["database"]["ok"] is True
    assert data["checks"]["ai"]["configured"] is False
    assert data["checks"]["ai"]["fallback"] == "template"


def test_health_endpoint_critical_when_database_down(client):
    """A database failure turns the health check critical (503)."""
    with patch("orderdesk.modules.ops.routes.Database.connect",
               side_effect=sqlite3.OperationalError("disk I/O error")):
        response = client.get("/health")

    assert response.status_code == 503
    data = response.get_json()
    assert data["status"] == "critical"
    assert data["checks"]["database"]["ok"] is False


# ---------------------------------------------------------------------------
# 7. Auth guards -- pages redirect, API returns 401
# ---------------------------------------------------------------------------

def test_admin_auth_redirect(client):
    """Unauthenticated GET to the orders page should redirect to login."""
    response = client.get("/admin/orders/", follow_redirects=False)
    assert response.status_code == 302, (
        f"Expected 302 redirect, got {response.status_code}"
    )
    assert "/admin/login" in response.headers.get("Location", "")


def test_api_requires_session(client):
    """Unauthenticated API calls get a JSON 401."""
    for method, url in (("get", "/api/orders"), ("post", "/api/orders"),
                        ("get", "/api/orders/stats"), ("post", "/api/ai/suggest-message")):
        response = getattr(client, method)(url)
        assert response.status_code == 401, f"{method.upper()} {url} -> {response.status_code}"
        assert response.get_json() == {'success': False, 'error': 'Authentication required'}


# ---------------------------------------------------------------------------
# 8. API error handlers -- JSON bodies under /api/
# ---------------------------------------------------------------------------

def test_api_unknown_route_returns_json_404(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Resource not found'}


def test_api_wrong_method_returns_json_405(admin_client):
    response = admin_client.patch("/api/orders/stats")
    assert response.status_code == 405
    assert response.get_json()["success"] is False


# ---------------------------------------------------------------------------
# 9. CORS -- the configured frontend origin may call /api/*
# ---------------------------------------------------------------------------

def test_cors_headers_on_api(app_factory):
    app = app_factory(CORS_ORIGINS="http://shop.test")
    response = app.test_client().get("/api/orders", headers={"Origin": "http://shop.test"})

    assert response.headers.get("Access-Control-Allow-Origin") == "http://shop.test"
