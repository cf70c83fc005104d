"""
Order payload and query validation
==================================
"""

import pytest
from werkzeug.datastructures import MultiDict

from orderdesk.modules.orders.validation import (
    ValidationError, validate_order_payload, parse_order_filters, normalize_datetime
)


def _fields(errors):
    return {error["field"] for error in errors}


VALID_ORDER = {
    "customer_id": 1,
    "amount": 19.99,
    "payment_method": "upi",
}


def test_valid_order_has_no_errors():
    assert validate_order_payload(VALID_ORDER) == []


def test_customer_data_can_replace_customer_id():
    payload = {"customer_data": {"name": "Ada", "email": "ada@example.com"}, "amount": 1, "payment_method": "upi"}
    assert validate_order_payload(payload) == []

    payload["customer_data"]["email"] = "ada@"
    assert _fields(validate_order_payload(payload)) == {"customer_data.email"}


def test_items_replace_amount_on_create():
    payload = {
        "customer_id": 1,
        "payment_method": "upi",
        "items": [{"product_id": "p1", "product_name": "Mug", "quantity": 1, "price": 8}],
    }
    assert validate_order_payload(payload) == []


@pytest.mark.parametrize("item,field", [
    ({"product_name": "Mug", "quantity": 1, "price": 1}, "items[0].product_id"),
    ({"product_id": "p", "quantity": 1, "price": 1}, "items[0].product_name"),
    ({"product_id": "p", "product_name": "Mug", "quantity": 0, "price": 1}, "items[0].quantity"),
    ({"product_id": "p", "product_name": "Mug", "quantity": 1.5, "price": 1}, "items[0].quantity"),
    ({"product_id": "p", "product_name": "Mug", "quantity": 1, "price": -1}, "items[0].price"),
    ({"product_id": "p", "product_name": "Mug", "quantity": 1, "price": 1, "category": "x" * 101}, "items[0].category"),
])
def test_item_rules(item, field):
    payload = dict(VALID_ORDER, items=[item])
    assert field in _fields(validate_order_payload(payload))


def test_empty_items_rejected():
    assert "items" in _fields(validate_order_payload(dict(VALID_ORDER, items=[])))


def test_enum_and_length_rules():
    payload = dict(VALID_ORDER, status="lost", payment_method="cheque", notes="n" * 1001,
                   order_number="", order_date="yesterday")
    assert _fields(validate_order_payload(payload)) == {
        "status", "payment_method", "notes", "order_number", "order_date"
    }


def test_partial_payload_only_checks_given_fields():
    assert validate_order_payload({"notes": "hi"}, partial=True) == []
    assert _fields(validate_order_payload({"amount": -5}, partial=True)) == {"amount"}


def test_parse_filters_defaults():
    filters = parse_order_filters(MultiDict())
    assert filters == {"page": 1, "limit": 10, "sort_by": "order_date", "sort_order": "desc"}


def test_parse_filters_values():
    filters = parse_order_filters(MultiDict({
        "page": "3", "limit": "25", "customer_id": "7", "status": "shipped",
        "min_amount": "5", "max_amount": "50.5", "search": "  ada ", "sort_by": "amount", "sort_order": "ASC",
        "start_date": "2024-01-01T00:00:00Z", "end_date": "2024-01-31",
    }))
    assert filters["page"] == 3
    assert filters["limit"] == 25
    assert filters["customer_id"] == 7
    assert filters["min_amount"] == 5.0
    assert filters["max_amount"] == 50.5
    assert filters["search"] == "ada"
    assert filters["sort_order"] == "asc"
    assert filters["start_date"] == "2024-01-01T00:00:00"
    assert filters["end_date"] == "2024-01-31T23:59:59"


def test_parse_filters_collects_every_error():
    with pytest.raises(ValidationError) as exc:
        parse_order_filters(MultiDict({"page": "0", "limit": "abc", "min_amount": "-1", "end_date": "soon"}))
    assert _fields(exc.value.errors) == {"page", "limit", "min_amount", "end_date"}


def test_normalize_datetime_converts_to_utc():
    assert normalize_datetime("2024-05-01T12:00:00+02:00") == "2024-05-01T10:00:00"
    assert normalize_datetime("2024-05-01") == "2024-05-01T00:00:00"


@pytest.mark.parametrize("value", ["inf", "nan", float("inf"), "1e999"])
def test_non_finite_numbers_are_rejected(value):
    assert _fields(validate_order_payload(dict(VALID_ORDER, amount=value))) == {"amount"}

    with pytest.raises(ValidationError) as exc:
        parse_order_filters(MultiDict({"min_amount": str(value)}))
    assert _fields(exc.value.errors) == {"min_amount"}
