# saferide/core/payments/repository.py
"""
Чтение платежей. Платежи создаются внешним процессингом.
"""

from __future__ import annotations

from decimal import Decimal

from saferide.infra.database import DatabaseManager, storage_errors
from saferide.shared.models.payment import Earnings, Payment


class PaymentRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int) -> list[Payment]:
        """Платежи пользователя, новые первыми."""
        query = """
            SELECT id, ride_id, user_id, driver_id, amount, paid_at
            FROM payments
            WHERE user_id = $1
            ORDER BY paid_at DESC
        """
        async with storage_errors("list payments"):
            rows = await self._db.fetch(query, user_id)
        return [Payment(**dict(row)) for row in rows]

    async def driver_earnings(self, driver_id: int) -> Earnings:
        """Сумма платежей водителя; 0.00, если платежей нет."""
        query = """
            SELECT COALESCE(SUM(amount), 0)::NUMERIC(10, 2) AS total
            FROM payments
            WHERE driver_id = $1
        """
        async with storage_errors("driver earnings"):
            total = await self._db.fetchval(query, driver_id)
        return Earnings(total=Decimal(total).quantize(Decimal("0.01")))
