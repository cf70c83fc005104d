"""
OrderDesk - Order Management Admin for Flask
============================================

A Flask extension bundling:
- Admin authentication (session based)
- Orders admin page and orders REST API
- AI marketing message suggestions with a template fallback
- Public /health endpoint

Usage:
    from flask import Flask
    from orderdesk import OrderDesk

    app = Flask(__name__)
    orderdesk = OrderDesk(app)

    # Or switch features off:
    orderdesk = OrderDesk(app, {'features': {'ai': False}})
"""

import os
import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from .core import Config, Database

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'dashboard': True,
    'orders': True,
    'ai': True,
    'ops': True,
}


class OrderDesk:
    """Flask extension that wires every OrderDesk module into an app"""

    def __init__(self, app=None, config=None):
        self.config = config or {}
        self.features = dict(DEFAULT_FEATURES)
        self.features.update(self.config.get('features', {}))
        self._registered = []

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_config(app)
        self._configure_logging(app)

        db_path = app.config['ORDERS_DB']
        Database.init_schema(db_path)
        logger.info(f"Orders database ready at {db_path}")

        self._init_cors(app)

        if self.features.get('ai'):
            from .modules.ai import ai_service
            ai_service.init_app(app)

        self._register_blueprints(app)
        self._register_error_handlers(app)

        @app.context_processor
        def inject_orderdesk():
            return {
                'brand_name': app.config.get('BRAND_NAME', 'OrderDesk'),
                'orderdesk_config': {
                    'features': self.features,
                    'version': __version__,
                },
            }

        app.extensions['orderdesk'] = self

    def _apply_config(self, app):
        """Seed app.config from Config without overriding what the host set"""
        # A host that only sets DB_DIR gets its orders DB inside that directory
        if 'DB_DIR' in app.config and 'ORDERS_DB' not in app.config:
            app.config['ORDERS_DB'] = os.path.join(app.config['DB_DIR'], 'orders.db')

        for key, value in Config.defaults().items():
            app.config.setdefault(key, value)

        if not app.config.get('SECRET_KEY'):
            logger.warning("SECRET_KEY not set - admin sessions will not work")

    def _configure_logging(self, app):
        level = str(app.config.get('LOG_LEVEL') or 'INFO').upper()
        logging.getLogger('orderdesk').setLevel(getattr(logging, level, logging.INFO))

    def _init_cors(self, app):
        from flask_cors import CORS

        origins = app.config.get('CORS_ORIGINS') or ''
        if isinstance(origins, str):
            origins = [o.strip() for o in origins.split(',') if o.strip()]
        CORS(app, resources={r"/api/*": {"origins": origins}}, supports_credentials=True)

    def _register_blueprints(self, app):
        if self.features.get('dashboard'):
            from .modules.dashboard import dashboard_bp
            app.register_blueprint(dashboard_bp)
            self._registered.append('dashboard')

        if self.features.get('orders'):
            from .modules.orders import orders_bp, orders_api_bp
            app.register_blueprint(orders_bp)
            app.register_blueprint(orders_api_bp)
            self._registered.append('orders')

        if self.features.get('ai'):
            from .modules.ai import ai_bp
            app.register_blueprint(ai_bp)
            self._registered.append('ai')

        if self.features.get('ops'):
            from .modules.ops import ops_health_bp
            app.register_blueprint(ops_health_bp)
            self._registered.append('ops')

        logger.info(f"OrderDesk modules registered: {', '.join(self._registered)}")

    def _register_error_handlers(self, app):
        """JSON bodies for errors under /api/, default pages elsewhere"""

        def handle_error(e):
            if not request.path.startswith('/api/'):
                return e
            code = e.code if isinstance(e, HTTPException) else 500
            if code >= 500:
                logger.error(f"Unhandled API error on {request.path}: {e}")
            message = {
                400: 'Bad request',
                401: 'Authentication required',
                404: 'Resource not found',
                405: 'Method not allowed',
            }.get(code, 'Internal server error')
            return jsonify({'success': False, 'error': message}), code

        for code in (400, 401, 404, 405, 500):
            app.register_error_handler(code, handle_error)

    def get_registered_modules(self):
        """Names of the feature modules registered on the app"""
        return list(self._registered)


__all__ = ['OrderDesk', '__version__']
