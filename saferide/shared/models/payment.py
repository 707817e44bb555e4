# saferide/shared/models/payment.py
"""
DTO платежей и заработка водителя.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from saferide.shared.models.ride import Money


class Payment(BaseModel):
    id: int
    ride_id: UUID | None = None
    user_id: int
    driver_id: int | None = None
    amount: Money
    paid_at: datetime


class Earnings(BaseModel):
    """Сумма платежей водителя."""

    total: Money = Decimal("0.00")
