# saferide/core/auth/__init__.py
"""
Аутентификация по bearer-токену.
"""

from saferide.core.auth.service import AuthGate, Principal

__all__ = ["AuthGate", "Principal"]
