"""
Customer storage and spending stats
===================================
"""

from orderdesk.modules.customers import (
    get_customer, get_customer_by_email, find_or_create_customer, get_existing_customer_ids
)
from orderdesk.modules.orders.models import create_order, update_order_status, delete_order


def test_find_or_create_reuses_email(app):
    with app.app_context():
        first = find_or_create_customer({"name": "Ada", "email": "ADA@example.com", "address": "1 Main St"})
        second = find_or_create_customer({"name": "Someone Else", "email": "ada@example.com"})

        assert first == second
        customer = get_customer_by_email("Ada@Example.com")
        assert customer["name"] == "Ada"
        assert customer["address"]["street"] == "1 Main St"
        assert customer["address"]["city"] == ""


def test_existing_customer_ids(app, customer_id):
    with app.app_context():
        assert get_existing_customer_ids([customer_id, 4242]) == {customer_id}
        assert get_existing_customer_ids([]) == set()


def test_stats_count_only_fulfilled_orders(app, customer_id):
    with app.app_context():
        pending = create_order({"customer_id": customer_id, "amount": 100, "payment_method": "upi",
                                "order_date": "2024-02-01T10:00:00"})
        confirmed = create_order({"customer_id": customer_id, "amount": 40, "payment_method": "upi",
                                  "status": "confirmed", "order_date": "2024-01-15T10:00:00"})
        create_order({"customer_id": customer_id, "amount": 60, "payment_method": "upi",
                      "status": "cancelled", "order_date": "2024-01-20T10:00:00"})

        customer = get_customer(customer_id)
        assert customer["total_spending"] == 40
        assert customer["visits"] == 1
        assert customer["last_visit"] == "2024-02-01T10:00:00"

        update_order_status(pending["id"], "shipped")
        customer = get_customer(customer_id)
        assert customer["total_spending"] == 140
        assert customer["visits"] == 2

        delete_order(confirmed["id"])
        customer = get_customer(customer_id)
        assert customer["total_spending"] == 100
        assert customer["visits"] == 1
