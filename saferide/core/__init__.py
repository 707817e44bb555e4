# saferide/core/__init__.py
"""
Бизнес-логика.
"""
