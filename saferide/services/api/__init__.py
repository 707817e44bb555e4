# saferide/services/api/__init__.py
"""
HTTP API.
"""
