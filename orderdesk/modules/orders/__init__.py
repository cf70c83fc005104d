"""
Orders Module
=============

Order management for OrderDesk.

Provides:
- Admin orders page (stats, search/status filters, pagination, create form,
  inline status changes)
- JSON REST API for listing, creating, updating and deleting orders

Usage:
    from orderdesk.modules.orders import orders_bp, orders_api_bp

    app.register_blueprint(orders_bp)      # Registers at /admin/orders
    app.register_blueprint(orders_api_bp)  # Registers at /api/orders
"""

from flask import Blueprint

# Admin page (session auth, HTML)
orders_bp = Blueprint(
    'orders_admin',
    __name__,
    url_prefix='/admin/orders',
    template_folder='templates'
)

# REST API (session auth, JSON)
orders_api_bp = Blueprint(
    'orders_api',
    __name__,
    url_prefix='/api/orders'
)

from . import routes

__all__ = ['orders_bp', 'orders_api_bp']
