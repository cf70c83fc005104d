"""
Customers Module
================

Customer storage used by the orders module. No routes of its own.
"""

from .models import (
    get_customer, get_customer_by_email, create_customer, find_or_create_customer,
    get_existing_customer_ids, refresh_customer_stats
)

__all__ = [
    'get_customer', 'get_customer_by_email', 'create_customer', 'find_or_create_customer',
    'get_existing_customer_ids', 'refresh_customer_stats'
]
