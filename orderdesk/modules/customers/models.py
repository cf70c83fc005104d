"""
Customer Models
===============

Customer records referenced by orders. Customers are created implicitly
when an order arrives with inline customer data, and their spending stats
are recomputed whenever one of their orders changes.
"""

import logging

from orderdesk.core import Database, get_db_path, db_log

logger = logging.getLogger(__name__)

# Orders in these statuses count towards a customer's spending
COUNTED_STATUSES = ('confirmed', 'shipped', 'delivered')

ADDRESS_FIELDS = ('street', 'city', 'state', 'zip_code', 'country')


def _row_to_dict(row):
    d = dict(row)
    d['address'] = {field: d.pop(field, '') or '' for field in ADDRESS_FIELDS}
    return d


def get_customer(customer_id):
    """Get a single customer by ID"""
    with Database.connect(get_db_path()) as conn:
        row = conn.execute('SELECT * FROM customers WHERE id = ?', (customer_id,)).fetchone()
    return _row_to_dict(row) if row else None


def get_customer_by_email(email):
    with Database.connect(get_db_path()) as conn:
        row = conn.execute(
            'SELECT * FROM customers WHERE email = ?', (email.strip().lower(),)
        ).fetchone()
    return _row_to_dict(row) if row else None


def _normalize_address(address):
    """Accept either a structured address dict or a single free-text street line"""
    if isinstance(address, dict):
        return {field: str(address.get(field) or '').strip() for field in ADDRESS_FIELDS}
    normalized = {field: '' for field in ADDRESS_FIELDS}
    normalized['street'] = str(address or '').strip()
    return normalized


def create_customer(name, email, phone='', address=None, conn=None):
    """Insert a customer and return its ID. Uses `conn` when given (caller commits)."""
    addr = _normalize_address(address)
    values = (
        name.strip(), email.strip().lower(), str(phone or '').strip(),
        addr['street'], addr['city'], addr['state'], addr['zip_code'], addr['country']
    )
    sql = '''
        INSERT INTO customers (name, email, phone, street, city, state, zip_code, country)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    '''
    if conn is not None:
        return conn.execute(sql, values).lastrowid

    with Database.connect(get_db_path()) as own_conn:
        customer_id = own_conn.execute(sql, values).lastrowid
        own_conn.commit()
    return customer_id


def find_or_create_customer(customer_data, conn=None):
    """
    Resolve inline customer data to a customer ID.

    An existing customer with the same email is reused as-is; otherwise a
    new customer is created from name/email/phone/address. With `conn` the
    insert joins the caller's transaction (caller commits).
    """
    email = customer_data['email'].strip().lower()
    if conn is not None:
        row = conn.execute('SELECT id FROM customers WHERE email = ?', (email,)).fetchone()
        existing = dict(row) if row else None
    else:
        existing = get_customer_by_email(email)
    if existing:
        return existing['id']

    customer_id = create_customer(
        customer_data.get('name', ''),
        customer_data['email'],
        customer_data.get('phone', ''),
        customer_data.get('address'),
        conn=conn,
    )
    logger.info(f"Created customer {customer_id} for {email}")
    if conn is None:
        db_log('info', 'customers', 'Customer created from order', {
            'id': customer_id, 'email': email
        })
    return customer_id


def get_existing_customer_ids(customer_ids):
    """Subset of `customer_ids` that exist, as a set of ints"""
    ids = [int(cid) for cid in customer_ids]
    if not ids:
        return set()
    placeholders = ', '.join('?' for _ in ids)
    with Database.connect(get_db_path()) as conn:
        rows = conn.execute(
            f'SELECT id FROM customers WHERE id IN ({placeholders})', ids
        ).fetchall()
    return {row['id'] for row in rows}


def refresh_customer_stats(customer_id, conn=None):
    """Recompute total_spending / visits / last_visit from the customer's orders"""
    placeholders = ', '.join('?' for _ in COUNTED_STATUSES)
    stats_sql = f'''
        SELECT COALESCE(SUM(amount), 0) AS total, COUNT(*) AS visits
        FROM orders WHERE customer_id = ? AND status IN ({placeholders})
    '''

    def _apply(c):
        stats = c.execute(stats_sql, (customer_id, *COUNTED_STATUSES)).fetchone()
        last = c.execute(
            'SELECT MAX(order_date) AS last_visit FROM orders WHERE customer_id = ?',
            (customer_id,)
        ).fetchone()
        c.execute('''
            UPDATE customers
            SET total_spending = ?, visits = ?, last_visit = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (round(stats['total'], 2), stats['visits'], last['last_visit'], customer_id))

    try:
        if conn is not None:
            _apply(conn)
            return True
        with Database.connect(get_db_path()) as own_conn:
            _apply(own_conn)
            own_conn.commit()
        return True
    except Exception as e:
        logger.error(f"Error updating customer stats for {customer_id}: {e}")
        db_log('error', 'customers', 'Error updating customer stats', {
            'customer_id': customer_id, 'error': str(e)
        })
        return False
