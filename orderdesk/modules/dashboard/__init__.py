"""
Dashboard Module
================

Admin authentication for OrderDesk.

Provides:
- Admin login/logout
- Admin user creation (open until the first admin exists)
- `admin_required` / `api_auth_required` decorators for other modules

This is the foundation module that the orders and AI modules plug into.
"""

from flask import Blueprint

# Note: Blueprint name is 'admin' so url_for('admin.login') works from every module
dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin',
    template_folder='templates'
)

# Import routes after blueprint is created
from . import routes
from .routes import admin_required, api_auth_required

__all__ = ['dashboard_bp', 'admin_required', 'api_auth_required']
