# saferide/core/payments/__init__.py
from saferide.core.payments.repository import PaymentRepository

__all__ = ["PaymentRepository"]
