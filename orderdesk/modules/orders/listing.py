"""
Order list helpers for the admin page: free-text/status filtering and
page slicing over an already-loaded list of orders.
"""

import math
from collections import namedtuple

Page = namedtuple('Page', ['items', 'page', 'per_page', 'total', 'pages', 'has_prev', 'has_next'])


def filter_orders(orders, search='', status=''):
    """
    Keep orders whose number, customer name or customer email contains
    `search` (case-insensitive) and whose status equals `status`.
    Empty arguments disable that filter.
    """
    term = (search or '').strip().lower()
    result = []
    for order in orders:
        if status and order.get('status') != status:
            continue
        if term:
            haystack = (
                str(order.get('order_number') or ''),
                str(order.get('customer_name') or ''),
                str(order.get('customer_email') or ''),
            )
            if not any(term in value.lower() for value in haystack):
                continue
        result.append(order)
    return result


def paginate(items, page, per_page=10):
    """Slice `items` to one page. Out-of-range pages are clamped."""
    total = len(items)
    pages = max(1, math.ceil(total / per_page))
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    page = min(max(page, 1), pages)

    start = (page - 1) * per_page
    return Page(
        items=items[start:start + per_page],
        page=page,
        per_page=per_page,
        total=total,
        pages=pages,
        has_prev=page > 1,
        has_next=page < pages,
    )
