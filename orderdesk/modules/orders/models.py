"""
Orders Models
=============

SQLite persistence for orders and their line items.
Orders are serialized into the flat row shape the admin page and the JSON
API both use (order_number, customer_name, total_amount, ...).
"""

import time
import uuid
import logging

from orderdesk.core import Database, get_db_path, db_log
from orderdesk.modules.customers import (
    get_customer, find_or_create_customer, get_existing_customer_ids, refresh_customer_stats
)
from .validation import SORT_FIELDS, normalize_datetime, utc_now_iso

logger = logging.getLogger(__name__)

SHIPPING_FIELDS = ('street', 'city', 'state', 'zip_code', 'country')

# Columns an update payload may set directly
UPDATABLE_FIELDS = ('order_number', 'amount', 'status', 'payment_method', 'notes')


class OrderError(Exception):
    """Business rule violation (unknown customer, duplicate order number, ...)"""

    def __init__(self, message, status_code=400, **extra):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.extra = extra


def generate_order_number(suffix=None):
    """ORD-<epoch millis>-<8 hex chars>[-<suffix>]"""
    number = f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
    if suffix is not None:
        number += f"-{suffix}"
    return number


def compute_amount(items):
    return round(sum(int(float(item['quantity'])) * float(item['price']) for item in items), 2)


def order_number_exists(order_number, exclude_id=None, conn=None):
    sql = 'SELECT id FROM orders WHERE order_number = ?'
    params = [order_number]
    if exclude_id is not None:
        sql += ' AND id != ?'
        params.append(exclude_id)

    if conn is not None:
        return conn.execute(sql, params).fetchone() is not None
    with Database.connect(get_db_path()) as own_conn:
        return own_conn.execute(sql, params).fetchone() is not None


def _normalize_shipping(address):
    if isinstance(address, dict):
        return {field: str(address.get(field) or '').strip() for field in SHIPPING_FIELDS}
    shipping = {field: '' for field in SHIPPING_FIELDS}
    shipping['street'] = str(address or '').strip()
    return shipping


def _normalize_item(item):
    return {
        'product_id': str(item['product_id']).strip(),
        'product_name': str(item['product_name']).strip(),
        'quantity': int(float(item['quantity'])),
        'price': round(float(item['price']), 2),
        'category': str(item.get('category') or '').strip(),
    }


def _insert_items(conn, order_id, items):
    conn.executemany('''
        INSERT INTO order_items (order_id, product_id, product_name, quantity, price, category)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', [
        (order_id, i['product_id'], i['product_name'], i['quantity'], i['price'], i['category'])
        for i in items
    ])


def _insert_order(conn, data):
    """Insert one validated order dict (customer already resolved). Returns the new id."""
    items = [_normalize_item(i) for i in (data.get('items') or [])]
    amount = data.get('amount')
    if amount in (None, '') and items:
        amount = compute_amount(items)
    shipping = _normalize_shipping(data.get('shipping_address'))

    cursor = conn.execute('''
        INSERT INTO orders (
            order_number, customer_id, amount, status, payment_method,
            shipping_street, shipping_city, shipping_state, shipping_zip_code, shipping_country,
            order_date, delivery_date, notes
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ''', (
        str(data['order_number']).strip(),
        int(data['customer_id']),
        round(float(amount or 0), 2),
        data.get('status') or 'pending',
        data['payment_method'],
        shipping['street'], shipping['city'], shipping['state'], shipping['zip_code'], shipping['country'],
        normalize_datetime(data['order_date']) if data.get('order_date') else utc_now_iso(),
        normalize_datetime(data['delivery_date']) if data.get('delivery_date') else None,
        (data.get('notes') or '').strip(),
    ))
    order_id = cursor.lastrowid
    _insert_items(conn, order_id, items)
    return order_id


# ===================
# SERIALIZATION
# ===================

_SELECT_ORDERS = '''
    SELECT o.*, c.name AS customer_name, c.email AS customer_email
    FROM orders o
    JOIN customers c ON c.id = o.customer_id
'''


def _load_items(conn, order_ids):
    """Map order_id -> list of item dicts, in insertion order"""
    items = {order_id: [] for order_id in order_ids}
    if not order_ids:
        return items
    placeholders = ', '.join('?' for _ in order_ids)
    rows = conn.execute(
        f'SELECT * FROM order_items WHERE order_id IN ({placeholders}) ORDER BY id',
        list(order_ids)
    ).fetchall()
    for row in rows:
        items[row['order_id']].append({
            'id': row['id'],
            'product_id': row['product_id'],
            'product_name': row['product_name'],
            'quantity': row['quantity'],
            'price': row['price'],
            'category': row['category'] or '',
            'subtotal': round(row['quantity'] * row['price'], 2),
        })
    return items


def serialize_order(row, items):
    """Flat order shape shared by the admin page and the JSON API"""
    return {
        'id': row['id'],
        'order_number': row['order_number'],
        'customer_id': row['customer_id'],
        'customer_name': row['customer_name'],
        'customer_email': row['customer_email'],
        'order_date': row['order_date'],
        'status': row['status'],
        'total_amount': row['amount'],
        'amount_display': f"{row['amount']:.2f}",
        'items': items,
        'total_items': sum(item['quantity'] for item in items),
        'shipping_address': {field: row[f'shipping_{field}'] or '' for field in SHIPPING_FIELDS},
        'payment_method': row['payment_method'],
        'delivery_date': row['delivery_date'],
        'notes': row['notes'] or '',
        'created_at': row['created_at'],
        'updated_at': row['updated_at'],
    }


def _serialize_rows(conn, rows):
    items = _load_items(conn, [row['id'] for row in rows])
    return [serialize_order(row, items[row['id']]) for row in rows]


# ===================
# READS
# ===================

def get_order(order_id, with_customer=False):
    """Get a single order by ID, optionally with the customer's contact details"""
    with Database.connect(get_db_path()) as conn:
        row = conn.execute(_SELECT_ORDERS + ' WHERE o.id = ?', (order_id,)).fetchone()
        if not row:
            return None
        order = _serialize_rows(conn, [row])[0]

    if with_customer:
        customer = get_customer(order['customer_id'])
        if customer:
            order['customer'] = {
                'id': customer['id'],
                'name': customer['name'],
                'email': customer['email'],
                'phone': customer['phone'] or '',
                'address': customer['address'],
            }
    return order


def _escape_like(term):
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _build_where(filters):
    clauses = []
    params = []

    if filters.get('customer_id') is not None:
        clauses.append('o.customer_id = ?')
        params.append(filters['customer_id'])
    if filters.get('status'):
        clauses.append('o.status = ?')
        params.append(filters['status'])
    if filters.get('payment_method'):
        clauses.append('o.payment_method = ?')
        params.append(filters['payment_method'])
    if filters.get('min_amount') is not None:
        clauses.append('o.amount >= ?')
        params.append(filters['min_amount'])
    if filters.get('max_amount') is not None:
        clauses.append('o.amount <= ?')
        params.append(filters['max_amount'])
    if filters.get('start_date'):
        clauses.append('o.order_date >= ?')
        params.append(filters['start_date'])
    if filters.get('end_date'):
        clauses.append('o.order_date <= ?')
        params.append(filters['end_date'])
    if filters.get('search'):
        like = '%' + _escape_like(filters['search'].lower()) + '%'
        clauses.append(
            "(LOWER(o.order_number) LIKE ? ESCAPE '\\' OR LOWER(c.name) LIKE ? ESCAPE '\\'"
            " OR LOWER(c.email) LIKE ? ESCAPE '\\')"
        )
        params.extend([like, like, like])

    where = (' WHERE ' + ' AND '.join(clauses)) if clauses else ''
    return where, params


def list_orders(filters):
    """
    Filtered, sorted, paginated orders.

    Returns (orders, total) where total counts every match, not just the page.
    """
    where, params = _build_where(filters)
    sort_column = SORT_FIELDS.get(filters.get('sort_by'), 'o.order_date')
    direction = 'ASC' if filters.get('sort_order') == 'asc' else 'DESC'
    limit = filters.get('limit', 10)
    offset = (filters.get('page', 1) - 1) * limit

    with Database.connect(get_db_path()) as conn:
        total = conn.execute(
            'SELECT COUNT(*) FROM orders o JOIN customers c ON c.id = o.customer_id' + where,
            params
        ).fetchone()[0]
        rows = conn.execute(
            _SELECT_ORDERS + where + f' ORDER BY {sort_column} {direction}, o.id {direction} LIMIT ? OFFSET ?',
            params + [limit, offset]
        ).fetchall()
        return _serialize_rows(conn, rows), total


def get_all_orders():
    """Every order, newest first (admin page filters and paginates locally)"""
    with Database.connect(get_db_path()) as conn:
        rows = conn.execute(_SELECT_ORDERS + ' ORDER BY o.order_date DESC, o.id DESC').fetchall()
        return _serialize_rows(conn, rows)


def get_order_stats():
    """Headline numbers for the orders dashboard"""
    with Database.connect(get_db_path()) as conn:
        totals = conn.execute(
            'SELECT COUNT(*) AS total, COALESCE(SUM(amount), 0) AS revenue, AVG(amount) AS average FROM orders'
        ).fetchone()
        rows = conn.execute('SELECT status, COUNT(*) AS count FROM orders GROUP BY status').fetchall()

    breakdown = {row['status']: row['count'] for row in rows}
    return {
        'total_orders': totals['total'],
        'total_revenue': round(totals['revenue'], 2),
        'average_order_value': round(totals['average'] or 0, 2),
        'pending_orders': breakdown.get('pending', 0),
        'completed_orders': breakdown.get('delivered', 0),
        'status_breakdown': breakdown,
    }


# ===================
# WRITES
# ===================

def create_order(data):
    """
    Create an order from a validated payload and return it serialized.

    `customer_data` (name/email/address) is resolved to an existing or new
    customer when no `customer_id` is given. Raises OrderError for an
    unknown customer or a taken order number.
    """
    data = dict(data)
    customer_data = data.pop('customer_data', None)
    data['order_number'] = str(data.get('order_number') or '').strip() or generate_order_number()

    with Database.connect(get_db_path()) as conn:
        if data.get('customer_id') in (None, '') and customer_data:
            data['customer_id'] = find_or_create_customer(customer_data, conn=conn)
        customer = conn.execute(
            'SELECT id FROM customers WHERE id = ?', (int(data['customer_id']),)
        ).fetchone()
        if not customer:
            raise OrderError('Customer not found')
        # Raising inside the block rolls back a customer created above
        if order_number_exists(data['order_number'], conn=conn):
            raise OrderError('Order number already exists')
        order_id = _insert_order(conn, data)
        refresh_customer_stats(int(data['customer_id']), conn=conn)
        conn.commit()

    logger.info(f"Created order {order_id} ({data['order_number']})")
    db_log('info', 'orders', 'Order created', {
        'id': order_id, 'order_number': data['order_number'], 'customer_id': data['customer_id']
    })
    return get_order(order_id)


def update_order(order_id, data):
    """
    Apply a partial update. Returns the updated order, or None if it does not exist.

    Non-empty `items` replace the line items and recompute the amount.
    """
    with Database.connect(get_db_path()) as conn:
        existing = conn.execute('SELECT * FROM orders WHERE id = ?', (order_id,)).fetchone()
        if not existing:
            return None

        new_number = str(data.get('order_number') or '').strip()
        if new_number and new_number != existing['order_number']:
            if order_number_exists(new_number, exclude_id=order_id, conn=conn):
                raise OrderError('Order number already exists')

        set_clauses = []
        values = []

        items = None
        if data.get('items'):
            items = [_normalize_item(i) for i in data['items']]
            data = dict(data, amount=compute_amount(items))

        for field in UPDATABLE_FIELDS:
            if field in data and data[field] is not None:
                value = data[field]
                if field == 'amount':
                    value = round(float(value), 2)
                elif isinstance(value, str):
                    value = value.strip()
                set_clauses.append(f'{field} = ?')
                values.append(value)

        for field in ('order_date', 'delivery_date'):
            if data.get(field):
                set_clauses.append(f'{field} = ?')
                values.append(normalize_datetime(data[field]))

        if data.get('shipping_address') is not None:
            shipping = _normalize_shipping(data['shipping_address'])
            for field in SHIPPING_FIELDS:
                set_clauses.append(f'shipping_{field} = ?')
                values.append(shipping[field])

        if set_clauses:
            set_clauses.append('updated_at = CURRENT_TIMESTAMP')
            conn.execute(
                f"UPDATE orders SET {', '.join(set_clauses)} WHERE id = ?",
                values + [order_id]
            )

        if items is not None:
            conn.execute('DELETE FROM order_items WHERE order_id = ?', (order_id,))
            _insert_items(conn, order_id, items)

        refresh_customer_stats(existing['customer_id'], conn=conn)
        conn.commit()

    logger.info(f"Updated order {order_id}")
    db_log('info', 'orders', 'Order updated', {'id': order_id, 'fields': sorted(data.keys())})
    return get_order(order_id)


def update_order_status(order_id, status):
    """Set the status of one order. Returns the updated order or None."""
    with Database.connect(get_db_path()) as conn:
        row = conn.execute('SELECT customer_id, status FROM orders WHERE id = ?', (order_id,)).fetchone()
        if not row:
            return None
        conn.execute(
            'UPDATE orders SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?',
            (status, order_id)
        )
        refresh_customer_stats(row['customer_id'], conn=conn)
        conn.commit()

    logger.info(f"Order {order_id} status {row['status']} -> {status}")
    db_log('info', 'orders', 'Order status changed', {
        'id': order_id, 'from': row['status'], 'to': status
    })
    return get_order(order_id)


def delete_order(order_id):
    """Delete an order and its items. Returns the number of items removed, or None if missing."""
    with Database.connect(get_db_path()) as conn:
        row = conn.execute('SELECT customer_id FROM orders WHERE id = ?', (order_id,)).fetchone()
        if not row:
            return None
        deleted_items = conn.execute('DELETE FROM order_items WHERE order_id = ?', (order_id,)).rowcount
        conn.execute('DELETE FROM orders WHERE id = ?', (order_id,))
        refresh_customer_stats(row['customer_id'], conn=conn)
        conn.commit()

    logger.info(f"Deleted order {order_id} ({deleted_items} items)")
    db_log('info', 'orders', 'Order deleted', {'id': order_id, 'items': deleted_items})
    return deleted_items


def bulk_create_orders(orders):
    """
    Insert a prepared batch (see validate_bulk_payload) atomically.

    Raises OrderError carrying `existing_order_numbers` or
    `missing_customer_ids` when the batch clashes with stored data.
    """
    numbers = [o['order_number'] for o in orders]
    customer_ids = sorted({int(o['customer_id']) for o in orders})

    with Database.connect(get_db_path()) as conn:
        placeholders = ', '.join('?' for _ in numbers)
        clashes = conn.execute(
            f'SELECT order_number FROM orders WHERE order_number IN ({placeholders})', numbers
        ).fetchall()
        if clashes:
            raise OrderError(
                'Some order numbers already exist',
                existing_order_numbers=[row['order_number'] for row in clashes]
            )

        missing = sorted(set(customer_ids) - get_existing_customer_ids(customer_ids))
        if missing:
            raise OrderError('Some customers not found', missing_customer_ids=missing)

        try:
            order_ids = [_insert_order(conn, order) for order in orders]
            for customer_id in customer_ids:
                refresh_customer_stats(customer_id, conn=conn)
            conn.commit()
        except Exception:
            conn.rollback()
            raise

        rows = conn.execute(
            _SELECT_ORDERS + f" WHERE o.id IN ({', '.join('?' for _ in order_ids)}) ORDER BY o.id",
            order_ids
        ).fetchall()
        created = _serialize_rows(conn, rows)

    logger.info(f"Bulk created {len(created)} orders")
    db_log('info', 'orders', 'Bulk orders created', {'count': len(created)})
    return created
