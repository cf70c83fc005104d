"""
Order Validation
================

Request payload and query-string checks for the orders API.
Validators return lists of {'field', 'message'} dicts so routes can hand
them straight back to the client.
"""

import math
import re
from datetime import datetime, timezone, time

ORDER_STATUSES = ('pending', 'processing', 'confirmed', 'shipped', 'delivered', 'cancelled', 'refunded')
PAYMENT_METHODS = ('credit_card', 'debit_card', 'upi', 'net_banking', 'cash_on_delivery')

# Maps public sort keys to SQL columns
SORT_FIELDS = {
    'order_date': 'o.order_date',
    'amount': 'o.amount',
    'order_number': 'o.order_number',
    'status': 'o.status',
    'created_at': 'o.created_at',
    'customer_name': 'c.name',
}

_VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')


class ValidationError(Exception):
    """Raised when a payload or query string fails validation"""

    def __init__(self, errors, message='Validation error'):
        super().__init__(message)
        self.message = message
        self.errors = errors


def is_valid_email(email):
    return bool(email) and bool(_VALID_EMAIL.match(email))


def parse_datetime(value):
    """Parse an ISO-8601 string into a naive UTC datetime. Raises ValueError."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_datetime(value):
    """ISO-8601 in, 'YYYY-MM-DDTHH:MM:SS' (UTC) out"""
    return parse_datetime(value).isoformat(timespec='seconds')


def utc_now_iso():
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec='seconds')


def _is_number(value):
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError, OverflowError):
        return False


def _is_int(value):
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    try:
        int(str(value))
        return True
    except (TypeError, ValueError):
        return False


def _check_length(errors, field, value, min_len, max_len, label):
    text = str(value).strip() if value is not None else ''
    if not (min_len <= len(text) <= max_len):
        if min_len:
            errors.append({'field': field, 'message': f'{label} must be between {min_len} and {max_len} characters'})
        else:
            errors.append({'field': field, 'message': f'{label} must be less than {max_len} characters'})


def validate_items(items, errors, field='items'):
    if not isinstance(items, list) or not items:
        errors.append({'field': field, 'message': 'Items must be a non-empty array'})
        return

    for i, item in enumerate(items):
        prefix = f'{field}[{i}]'
        if not isinstance(item, dict):
            errors.append({'field': prefix, 'message': 'Each item must be an object'})
            continue
        if not str(item.get('product_id') or '').strip():
            errors.append({'field': f'{prefix}.product_id', 'message': 'Product ID is required for each item'})
        if not str(item.get('product_name') or '').strip():
            errors.append({'field': f'{prefix}.product_name', 'message': 'Product name is required for each item'})
        else:
            _check_length(errors, f'{prefix}.product_name', item['product_name'], 1, 200, 'Product name')
        quantity = item.get('quantity')
        if not _is_int(quantity) or int(float(quantity)) < 1:
            errors.append({'field': f'{prefix}.quantity', 'message': 'Quantity must be a positive integer'})
        price = item.get('price')
        if not _is_number(price) or float(price) < 0:
            errors.append({'field': f'{prefix}.price', 'message': 'Price must be a positive number'})
        if item.get('category') is not None:
            _check_length(errors, f'{prefix}.category', item['category'], 0, 100, 'Category')


def validate_order_payload(data, partial=False):
    """
    Validate an order create (partial=False) or update (partial=True) payload.

    Returns a list of error dicts; empty means valid.
    """
    errors = []
    if not isinstance(data, dict):
        return [{'field': '', 'message': 'Request body must be a JSON object'}]

    if not partial:
        has_customer_id = data.get('customer_id') not in (None, '')
        customer_data = data.get('customer_data')
        if not has_customer_id and not customer_data:
            errors.append({'field': 'customer_id', 'message': 'Customer ID is required when customer_data is not provided'})
        elif has_customer_id and not _is_int(data['customer_id']):
            errors.append({'field': 'customer_id', 'message': 'Please provide a valid customer ID'})
        elif not has_customer_id:
            if not isinstance(customer_data, dict):
                errors.append({'field': 'customer_data', 'message': 'Customer data must be an object'})
            else:
                if not str(customer_data.get('name') or '').strip():
                    errors.append({'field': 'customer_data.name', 'message': 'Customer name is required'})
                else:
                    _check_length(errors, 'customer_data.name', customer_data['name'], 1, 100, 'Customer name')
                if not is_valid_email(str(customer_data.get('email') or '').strip()):
                    errors.append({'field': 'customer_data.email', 'message': 'Please provide a valid email address'})

    if data.get('order_number') is not None:
        _check_length(errors, 'order_number', data['order_number'], 1, 100, 'Order number')

    has_items = 'items' in data and data['items'] not in (None, [])
    if 'amount' in data and data['amount'] is not None:
        if not _is_number(data['amount']) or float(data['amount']) < 0:
            errors.append({'field': 'amount', 'message': 'Amount must be a positive number'})
    elif not partial and not has_items:
        errors.append({'field': 'amount', 'message': 'Amount must be a positive number'})

    if data.get('status') is not None and data['status'] not in ORDER_STATUSES:
        errors.append({'field': 'status', 'message': 'Invalid order status'})

    if data.get('payment_method') is not None or not partial:
        if data.get('payment_method') not in PAYMENT_METHODS:
            errors.append({'field': 'payment_method', 'message': 'Invalid payment method'})

    if 'items' in data and data['items'] is not None:
        validate_items(data['items'], errors)

    if data.get('shipping_address') is not None and not isinstance(data['shipping_address'], (dict, str)):
        errors.append({'field': 'shipping_address', 'message': 'Shipping address must be an object'})

    for field, label in (('order_date', 'Order date'), ('delivery_date', 'Delivery date')):
        if data.get(field):
            try:
                parse_datetime(data[field])
            except (TypeError, ValueError):
                errors.append({'field': field, 'message': f'{label} must be a valid date'})

    if data.get('notes') is not None:
        _check_length(errors, 'notes', data['notes'], 0, 1000, 'Notes')

    return errors


def _positive_int(args, key, default, errors, maximum=None):
    raw = args.get(key)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        errors.append({'field': key, 'message': f'{key} must be an integer'})
        return default
    if value < 1 or (maximum is not None and value > maximum):
        bound = f' and at most {maximum}' if maximum is not None else ''
        errors.append({'field': key, 'message': f'{key} must be at least 1{bound}'})
        return default
    return value


def _non_negative_float(args, key, errors, label):
    raw = args.get(key)
    if raw in (None, ''):
        return None
    if not _is_number(raw) or float(raw) < 0:
        errors.append({'field': key, 'message': f'{label} must be a positive number'})
        return None
    return float(raw)


def parse_order_filters(args, max_limit=100, default_limit=10):
    """
    Turn list query parameters into a filters dict for `list_orders`.
    Raises ValidationError listing every bad parameter.
    """
    errors = []
    filters = {
        'page': _positive_int(args, 'page', 1, errors),
        'limit': _positive_int(args, 'limit', default_limit, errors, maximum=max_limit),
    }

    customer_id = args.get('customer_id')
    if customer_id:
        if _is_int(customer_id):
            filters['customer_id'] = int(customer_id)
        else:
            errors.append({'field': 'customer_id', 'message': 'Customer ID must be a valid ID'})

    status = args.get('status')
    if status:
        if status in ORDER_STATUSES:
            filters['status'] = status
        else:
            errors.append({'field': 'status', 'message': 'Invalid order status'})

    payment_method = args.get('payment_method')
    if payment_method:
        if payment_method in PAYMENT_METHODS:
            filters['payment_method'] = payment_method
        else:
            errors.append({'field': 'payment_method', 'message': 'Invalid payment method'})

    min_amount = _non_negative_float(args, 'min_amount', errors, 'Minimum amount')
    if min_amount is not None:
        filters['min_amount'] = min_amount
    max_amount = _non_negative_float(args, 'max_amount', errors, 'Maximum amount')
    if max_amount is not None:
        filters['max_amount'] = max_amount

    for key, label in (('start_date', 'Start date'), ('end_date', 'End date')):
        raw = args.get(key)
        if not raw:
            continue
        try:
            parsed = parse_datetime(raw)
        except (TypeError, ValueError):
            errors.append({'field': key, 'message': f'{label} must be a valid date'})
            continue
        # A bare date as end bound includes that whole day
        if key == 'end_date' and 'T' not in raw and ' ' not in raw.strip():
            parsed = datetime.combine(parsed.date(), time(23, 59, 59))
        filters[key] = parsed.isoformat(timespec='seconds')

    search = (args.get('search') or '').strip()
    if search:
        filters['search'] = search

    sort_by = args.get('sort_by') or 'order_date'
    if sort_by not in SORT_FIELDS:
        errors.append({'field': 'sort_by', 'message': f"sort_by must be one of: {', '.join(SORT_FIELDS)}"})
        sort_by = 'order_date'
    filters['sort_by'] = sort_by

    sort_order = (args.get('sort_order') or 'desc').lower()
    if sort_order not in ('asc', 'desc'):
        errors.append({'field': 'sort_order', 'message': 'sort_order must be asc or desc'})
        sort_order = 'desc'
    filters['sort_order'] = sort_order

    if errors:
        raise ValidationError(errors)
    return filters


def validate_bulk_payload(orders, limit=500):
    """
    Check a bulk-create batch. Returns (errors, prepared_orders).

    Missing order numbers are generated with the batch index as suffix;
    duplicates inside the batch point back at the first occurrence.
    """
    from .models import generate_order_number

    if not isinstance(orders, list) or not orders:
        return [{'index': None, 'message': 'Please provide an array of orders'}], []
    if len(orders) > limit:
        return [{'index': None, 'message': f'Maximum {limit} orders can be created at once'}], []

    errors = []
    prepared = []
    seen_numbers = {}

    for i, order in enumerate(orders):
        if not isinstance(order, dict):
            errors.append({'index': i, 'message': 'Each order must be an object'})
            continue
        if order.get('customer_id') in (None, '') or order.get('amount') in (None, '') or not order.get('payment_method'):
            errors.append({'index': i, 'message': 'customer_id, amount, and payment_method are required'})
            continue

        field_errors = validate_order_payload(order)
        if field_errors:
            errors.append({'index': i, 'message': 'Invalid order', 'errors': field_errors})
            continue

        order = dict(order)
        order.pop('customer_data', None)
        if not order.get('order_number'):
            order['order_number'] = generate_order_number(suffix=i)

        first = seen_numbers.get(order['order_number'])
        if first is not None:
            errors.append({'index': i, 'message': f'Duplicate order number found at index {first}'})
            continue
        seen_numbers[order['order_number']] = i
        prepared.append(order)

    return errors, prepared
