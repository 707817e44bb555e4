# saferide/__init__.py
"""
Safe Ride: бэкенд заказа поездок.
"""

__version__ = "1.0.0"
