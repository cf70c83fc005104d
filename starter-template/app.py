"""
OrderDesk Starter Template
==========================

A ready-to-run Flask application with every OrderDesk module enabled.

Run with:
    python app.py

Visit:
    http://localhost:5000/admin         - Orders admin
    http://localhost:5000/api/orders    - Orders API (admin session)
    http://localhost:5000/health        - Health check
"""

from flask import Flask, redirect, url_for

from config import Config
from orderdesk import OrderDesk

# Create Flask app
app = Flask(__name__)
app.config.from_object(Config)

# Initialize OrderDesk - this registers all modules automatically
orderdesk = OrderDesk(app)


@app.route('/')
def index():
    """Send visitors straight to the admin"""
    return redirect(url_for('admin.index'))


if __name__ == '__main__':
    print("\n" + "=" * 60)
    print("OrderDesk Starter Template")
    print("=" * 60)
    print(f"Orders admin:    http://localhost:5000/admin")
    print(f"Admin Login:     http://localhost:5000/admin/login")
    print(f"Create Admin:    http://localhost:5000/admin/create-admin")
    print(f"Health:          http://localhost:5000/health")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=5000, debug=True)
