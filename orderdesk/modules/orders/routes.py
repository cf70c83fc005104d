"""
Orders Routes
=============

Admin orders page (HTML) and the orders REST API (JSON).
"""

import logging

from flask import render_template, request, redirect, url_for, flash, jsonify

from . import orders_bp, orders_api_bp
from .models import (
    OrderError, create_order, get_order, get_all_orders, list_orders, update_order,
    update_order_status, delete_order, bulk_create_orders, get_order_stats
)
from .validation import (
    ORDER_STATUSES, PAYMENT_METHODS, ValidationError, validate_order_payload,
    parse_order_filters, validate_bulk_payload
)
from .listing import filter_orders, paginate
from orderdesk.core import get_config_value, db_log
from orderdesk.modules.dashboard import admin_required, api_auth_required

logger = logging.getLogger(__name__)


def _int_setting(key, default):
    try:
        return int(get_config_value(key, default))
    except (TypeError, ValueError):
        return default


# ===================
# ADMIN PAGE
# ===================

def _applied_filters(source):
    """The search/status/page the page was showing when a form was submitted"""
    filters = {}
    for key in ('search', 'status', 'page'):
        value = (source.get(key) or '').strip()
        if value:
            filters[key] = value
    return filters


def _back_to_manager():
    return redirect(url_for('orders_admin.orders_manager', **_applied_filters(request.form)))


def _items_from_form(form):
    """Zip the item_name[] / item_quantity[] / item_price[] rows, skipping blank ones"""
    names = form.getlist('item_name[]')
    quantities = form.getlist('item_quantity[]')
    prices = form.getlist('item_price[]')

    items = []
    for i, name in enumerate(names):
        name = name.strip()
        if not name:
            continue
        items.append({
            'product_id': name,
            'product_name': name,
            'quantity': quantities[i].strip() if i < len(quantities) else '',
            'price': prices[i].strip() if i < len(prices) else '',
        })
    return items


@orders_bp.route('/')
@admin_required
def orders_manager():
    """Order management page"""
    search = request.args.get('search', '').strip()
    status = request.args.get('status', '').strip()
    if status not in ORDER_STATUSES:
        status = ''

    try:
        orders = get_all_orders()
        stats = get_order_stats()
    except Exception as e:
        logger.error(f"Error loading orders page: {e}")
        db_log('error', 'orders', 'Error loading orders page', {'error': str(e)})
        flash('Failed to load orders', 'error')
        orders, stats = [], None

    page = paginate(
        filter_orders(orders, search=search, status=status),
        request.args.get('page', 1),
        per_page=_int_setting('ORDERS_PER_PAGE', 10)
    )

    return render_template(
        'orders/orders_manager.html',
        page=page,
        stats=stats,
        search=search,
        status=status,
        statuses=ORDER_STATUSES,
        payment_methods=PAYMENT_METHODS,
    )


@orders_bp.route('/create', methods=['POST'])
@admin_required
def create_order_form():
    """Create an order from the admin form"""
    form = request.form
    shipping_address = form.get('shipping_address', '').strip()
    payload = {
        'customer_data': {
            'name': form.get('customer_name', '').strip(),
            'email': form.get('customer_email', '').strip(),
            'address': shipping_address,
        },
        'items': _items_from_form(form),
        'shipping_address': shipping_address,
        'payment_method': form.get('payment_method', ''),
        'status': 'pending',
    }

    errors = validate_order_payload(payload)
    if errors:
        for error in errors:
            flash(error['message'], 'error')
        return _back_to_manager()

    try:
        order = create_order(payload)
    except OrderError as e:
        flash(e.message, 'error')
        return _back_to_manager()
    except Exception as e:
        logger.error(f"Error creating order from admin form: {e}")
        db_log('error', 'orders', 'Error creating order', {'error': str(e)})
        flash('Failed to create order', 'error')
        return _back_to_manager()

    flash(f"Order {order['order_number']} created", 'success')
    return _back_to_manager()


@orders_bp.route('/<int:order_id>/status', methods=['POST'])
@admin_required
def change_status_form(order_id):
    """Inline status change from the orders table"""
    new_status = request.form.get('new_status', '')
    if new_status not in ORDER_STATUSES:
        flash('Invalid order status', 'error')
        return _back_to_manager()

    order = get_order(order_id)
    if not order:
        flash('Order not found', 'error')
        return _back_to_manager()

    if order['status'] == new_status:
        return _back_to_manager()

    try:
        update_order_status(order_id, new_status)
    except Exception as e:
        logger.error(f"Error updating status for order {order_id}: {e}")
        flash('Failed to update order status', 'error')
        return _back_to_manager()

    flash(f"Order {order['order_number']} marked {new_status}", 'success')
    return _back_to_manager()


# ===================
# REST API
# ===================

def _validation_response(errors, message='Validation error'):
    return jsonify({'success': False, 'error': message, 'errors': errors}), 400


def _order_error_response(error):
    body = {'success': False, 'error': error.message}
    body.update(error.extra)
    return jsonify(body), error.status_code


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


@orders_api_bp.route('/')
@orders_api_bp.route('')
@api_auth_required
def api_list_orders():
    """Filtered, sorted, paginated order list"""
    try:
        filters = parse_order_filters(
            request.args,
            max_limit=_int_setting('API_MAX_PAGE_SIZE', 100),
            default_limit=_int_setting('ORDERS_PER_PAGE', 10)
        )
    except ValidationError as e:
        return _validation_response(e.errors)

    try:
        orders, total = list_orders(filters)
    except Exception as e:
        logger.error(f"Error listing orders: {e}")
        db_log('error', 'orders', 'Error listing orders', {'error': str(e)})
        return jsonify({'success': False, 'error': 'Failed to fetch orders'}), 500

    limit = filters['limit']
    return jsonify({
        'success': True,
        'orders': orders,
        'pagination': {
            'page': filters['page'],
            'limit': limit,
            'total': total,
            'pages': (total + limit - 1) // limit,
        }
    })


@orders_api_bp.route('/', methods=['POST'])
@orders_api_bp.route('', methods=['POST'])
@api_auth_required
def api_create_order():
    """Create a single order"""
    data = _json_body()
    if data is None:
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    errors = validate_order_payload(data)
    if errors:
        return _validation_response(errors)

    try:
        order = create_order(data)
    except OrderError as e:
        return _order_error_response(e)
    except Exception as e:
        logger.error(f"Error creating order: {e}")
        db_log('error', 'orders', 'Error creating order', {'error': str(e)})
        return jsonify({'success': False, 'error': 'Failed to create order'}), 500

    return jsonify({'success': True, 'message': 'Order created successfully', 'order': order}), 201


@orders_api_bp.route('/stats')
@api_auth_required
def api_order_stats():
    """Headline order statistics"""
    try:
        return jsonify({'success': True, 'stats': get_order_stats()})
    except Exception as e:
        logger.error(f"Error computing order stats: {e}")
        return jsonify({'success': False, 'error': 'Failed to fetch order statistics'}), 500


@orders_api_bp.route('/bulk', methods=['POST'])
@api_auth_required
def api_bulk_create():
    """Create many orders in one transaction"""
    data = _json_body()
    if data is None:
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    errors, prepared = validate_bulk_payload(
        data.get('orders'), limit=_int_setting('BULK_ORDER_LIMIT', 500)
    )
    if errors:
        return _validation_response(errors, message='Validation errors in bulk orders')

    try:
        created = bulk_create_orders(prepared)
    except OrderError as e:
        return _order_error_response(e)
    except Exception as e:
        logger.error(f"Error bulk creating orders: {e}")
        db_log('error', 'orders', 'Error bulk creating orders', {'error': str(e)})
        return jsonify({'success': False, 'error': 'Failed to create bulk orders'}), 500

    return jsonify({
        'success': True,
        'message': f'{len(created)} orders created successfully',
        'count': len(created),
        'orders': created,
    }), 201


@orders_api_bp.route('/<int:order_id>')
@api_auth_required
def api_order_details(order_id):
    """Single order with customer contact details"""
    try:
        order = get_order(order_id, with_customer=True)
    except Exception as e:
        logger.error(f"Error fetching order {order_id}: {e}")
        return jsonify({'success': False, 'error': 'Failed to fetch order'}), 500

    if not order:
        return jsonify({'success': False, 'error': 'Order not found'}), 404
    return jsonify({'success': True, 'order': order})


@orders_api_bp.route('/<int:order_id>', methods=['PUT'])
@api_auth_required
def api_update_order(order_id):
    """Partial order update"""
    data = _json_body()
    if data is None:
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    errors = validate_order_payload(data, partial=True)
    if errors:
        return _validation_response(errors)

    try:
        order = update_order(order_id, data)
    except OrderError as e:
        return _order_error_response(e)
    except Exception as e:
        logger.error(f"Error updating order {order_id}: {e}")
        db_log('error', 'orders', 'Error updating order', {'id': order_id, 'error': str(e)})
        return jsonify({'success': False, 'error': 'Failed to update order'}), 500

    if not order:
        return jsonify({'success': False, 'error': 'Order not found'}), 404
    return jsonify({'success': True, 'message': 'Order updated successfully', 'order': order})


@orders_api_bp.route('/<int:order_id>/status', methods=['PUT'])
@api_auth_required
def api_update_status(order_id):
    """Change only the order status"""
    data = _json_body() or {}
    status = data.get('status')
    if status not in ORDER_STATUSES:
        return _validation_response([{'field': 'status', 'message': 'Invalid order status'}])

    try:
        order = update_order_status(order_id, status)
    except Exception as e:
        logger.error(f"Error updating status for order {order_id}: {e}")
        return jsonify({'success': False, 'error': 'Failed to update order status'}), 500

    if not order:
        return jsonify({'success': False, 'error': 'Order not found'}), 404
    return jsonify({'success': True, 'message': 'Order status updated successfully', 'order': order})


@orders_api_bp.route('/<int:order_id>', methods=['DELETE'])
@api_auth_required
def api_delete_order(order_id):
    """Delete an order and its line items"""
    try:
        deleted_items = delete_order(order_id)
    except Exception as e:
        logger.error(f"Error deleting order {order_id}: {e}")
        db_log('error', 'orders', 'Error deleting order', {'id': order_id, 'error': str(e)})
        return jsonify({'success': False, 'error': 'Failed to delete order'}), 500

    if deleted_items is None:
        return jsonify({'success': False, 'error': 'Order not found'}), 404
    return jsonify({
        'success': True,
        'message': 'Order deleted successfully',
        'deleted_items': deleted_items,
    })
