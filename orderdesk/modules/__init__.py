"""
OrderDesk Modules
=================

Flask blueprint modules registered by the OrderDesk extension.
"""

__all__ = ['ai', 'customers', 'dashboard', 'ops', 'orders']
