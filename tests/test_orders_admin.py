"""
Orders admin page tests
=======================

Server-rendered orders manager: listing, filters, create form, inline status.
"""

from urllib.parse import urlparse, parse_qs

from orderdesk.modules.orders.models import get_all_orders


def _form_order(client, name="Ada Lovelace", email="ada@example.com", **extra):
    data = {
        "customer_name": name,
        "customer_email": email,
        "shipping_address": "12 Analytical Way, London",
        "payment_method": "credit_card",
        "item_name[]": ["Notebook", "Pen"],
        "item_quantity[]": ["2", "3"],
        "item_price[]": ["12.50", "1.50"],
    }
    data.update(extra)
    return client.post("/admin/orders/create", data=data, follow_redirects=False)


def test_orders_page_renders_empty(admin_client):
    response = admin_client.get("/admin/orders/")
    assert response.status_code == 200

    html = response.get_data(as_text=True)
    assert "Order Management" in html
    assert "No orders found" in html
    assert "Page 1 of 1" in html


def test_admin_index_redirects_to_orders(admin_client):
    response = admin_client.get("/admin/", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/admin/orders/")


def test_create_order_from_form(admin_client, app):
    response = _form_order(admin_client)
    assert response.status_code == 302

    with app.app_context():
        orders = get_all_orders()
    assert len(orders) == 1

    order = orders[0]
    assert order["status"] == "pending"
    assert order["total_amount"] == 29.5
    assert order["customer_email"] == "ada@example.com"
    assert order["items"][0]["product_id"] == "Notebook"
    assert order["shipping_address"]["street"] == "12 Analytical Way, London"

    html = admin_client.get("/admin/orders/").get_data(as_text=True)
    assert order["order_number"] in html
    assert "chip-pending" in html


def test_create_order_form_skips_blank_item_rows(admin_client, app):
    _form_order(admin_client, **{
        "item_name[]": ["Notebook", ""],
        "item_quantity[]": ["1", "1"],
        "item_price[]": ["4", "0"],
    })

    with app.app_context():
        orders = get_all_orders()
    assert [item["product_name"] for item in orders[0]["items"]] == ["Notebook"]


def test_create_order_form_validation_flashes(admin_client, app):
    _form_order(admin_client, email="not-an-email")
    html = admin_client.get("/admin/orders/").get_data(as_text=True)
    assert "Please provide a valid email address" in html

    with app.app_context():
        assert get_all_orders() == []


def test_create_keeps_applied_filters(admin_client):
    response = _form_order(admin_client, search="ada", status="pending", page="1")

    query = parse_qs(urlparse(response.headers["Location"]).query)
    assert query == {"search": ["ada"], "status": ["pending"], "page": ["1"]}


def test_filters_and_pagination(admin_client):
    for i in range(12):
        _form_order(admin_client, name=f"Customer {i}", email=f"c{i}@example.com")

    html = admin_client.get("/admin/orders/").get_data(as_text=True)
    assert "Page 1 of 2" in html
    assert "(12 orders)" in html

    html = admin_client.get("/admin/orders/?page=2").get_data(as_text=True)
    assert "Page 2 of 2" in html

    # Out of range pages clamp to the last page
    html = admin_client.get("/admin/orders/?page=99").get_data(as_text=True)
    assert "Page 2 of 2" in html

    html = admin_client.get("/admin/orders/?search=C7@EXAMPLE").get_data(as_text=True)
    assert "(1 orders)" in html
    assert "c7@example.com" in html

    html = admin_client.get("/admin/orders/?status=delivered").get_data(as_text=True)
    assert "No orders found" in html


def test_inline_status_change(admin_client, app):
    _form_order(admin_client)
    with app.app_context():
        order_id = get_all_orders()[0]["id"]

    response = admin_client.post(f"/admin/orders/{order_id}/status", data={
        "new_status": "shipped", "status": "pending",
    })
    assert response.status_code == 302
    assert parse_qs(urlparse(response.headers["Location"]).query) == {"status": ["pending"]}

    with app.app_context():
        assert get_all_orders()[0]["status"] == "shipped"


def test_inline_status_rejects_unknown_status(admin_client, app):
    _form_order(admin_client)
    with app.app_context():
        order_id = get_all_orders()[0]["id"]

    admin_client.post(f"/admin/orders/{order_id}/status", data={"new_status": "lost"})

    with app.app_context():
        assert get_all_orders()[0]["status"] == "pending"
