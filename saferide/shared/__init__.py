# saferide/shared/__init__.py
"""
Общие модели и события.
"""
