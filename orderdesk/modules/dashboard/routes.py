"""
Admin Dashboard Routes
======================

Session-based admin authentication shared by every OrderDesk module.
"""

import logging
from functools import wraps
from urllib.parse import urlparse

from flask import render_template, request, redirect, url_for, flash, session, jsonify
from werkzeug.security import generate_password_hash, check_password_hash

from . import dashboard_bp
from orderdesk.core import Database, get_db_path, db_log

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _is_local_path(target):
    """Only same-site absolute paths are safe redirect targets"""
    if not target or not target.startswith('/') or target.startswith(('//', '/\\')):
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc


def admin_required(f):
    """Decorator to require admin login on page routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            return redirect(url_for('admin.login', next=request.path))
        return f(*args, **kwargs)
    return decorated_function


def api_auth_required(f):
    """Decorator to require admin login on JSON routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def count_admins():
    with Database.connect(get_db_path()) as conn:
        return conn.execute("SELECT COUNT(*) FROM admin").fetchone()[0]


def create_admin_account(email, password):
    """Insert a new admin. Returns the new id, or None if the email is taken."""
    email = email.strip().lower()
    try:
        with Database.connect(get_db_path()) as conn:
            cursor = conn.execute(
                "INSERT INTO admin (email, password_hash) VALUES (?, ?)",
                (email, generate_password_hash(password))
            )
            conn.commit()
            return cursor.lastrowid
    except Exception as e:
        logger.warning(f"Could not create admin {email}: {e}")
        return None


def authenticate_admin(email, password):
    """Return (id, email) for valid credentials, else None"""
    with Database.connect(get_db_path()) as conn:
        row = conn.execute(
            "SELECT id, email, password_hash FROM admin WHERE email = ?",
            (email.strip().lower(),)
        ).fetchone()

    if row and check_password_hash(row['password_hash'], password):
        return row['id'], row['email']
    return None


@dashboard_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Admin login route"""
    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')

        if not email or not password:
            flash('Please enter both email and password', 'error')
            return render_template('dashboard/login.html'), 400

        try:
            admin = authenticate_admin(email, password)
        except Exception as e:
            logger.error(f"Login error: {e}")
            flash('Login failed, please try again', 'error')
            return render_template('dashboard/login.html'), 500

        if admin:
            session['admin_id'], session['admin_email'] = admin
            db_log('info', 'dashboard', 'Admin logged in', {'email': email})
            flash('Login successful', 'success')

            next_page = request.args.get('next')
            # Only follow local redirects
            if not _is_local_path(next_page):
                next_page = url_for('admin.index')
            return redirect(next_page)

        db_log('warning', 'dashboard', 'Failed admin login', {'email': email})
        flash('Invalid email or password', 'error')
        return render_template('dashboard/login.html'), 401

    return render_template('dashboard/login.html')


@dashboard_bp.route('/logout')
def logout():
    """Admin logout route"""
    admin_email = session.pop('admin_email', None)
    session.pop('admin_id', None)
    if admin_email:
        db_log('info', 'dashboard', 'Admin logged out', {'email': admin_email})
    flash('You have been logged out', 'info')
    return redirect(url_for('admin.login'))


@dashboard_bp.route('/')
@admin_required
def index():
    """The orders manager is the admin home page"""
    return redirect(url_for('orders_admin.orders_manager'))


@dashboard_bp.route('/create-admin', methods=['GET', 'POST'])
def create_admin():
    """Create new admin (only accessible by existing admin or if no admins exist)"""
    if count_admins() > 0 and 'admin_id' not in session:
        return redirect(url_for('admin.login'))

    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')
        confirm_password = request.form.get('confirm_password', '')

        if not all([email, password, confirm_password]):
            flash('All fields are required', 'error')
            return render_template('dashboard/create_admin.html'), 400

        if password != confirm_password:
            flash('Passwords do not match', 'error')
            return render_template('dashboard/create_admin.html'), 400

        if len(password) < MIN_PASSWORD_LENGTH:
            flash(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long', 'error')
            return render_template('dashboard/create_admin.html'), 400

        admin_id = create_admin_account(email, password)
        if not admin_id:
            flash('An admin with that email already exists', 'error')
            return render_template('dashboard/create_admin.html'), 400

        db_log('info', 'dashboard', 'Admin account created', {'email': email, 'id': admin_id})
        flash('Admin account created, please sign in', 'success')
        return redirect(url_for('admin.login'))

    return render_template('dashboard/create_admin.html')
