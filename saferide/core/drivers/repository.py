# saferide/core/drivers/repository.py
"""
Геопозиция водителей в таблице users.
"""

from __future__ import annotations

from datetime import datetime

from saferide.common.constants import ParticipantRole
from saferide.infra.database import DatabaseManager, storage_errors
from saferide.shared.models.driver import NearbyDriver
from saferide.shared.models.ride import Coordinate


class DriverRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def update_location(self, user_id: int, location: Coordinate, now: datetime) -> bool:
        """
        Сохраняет последнюю позицию, создавая строку водителя при первом обновлении.
        False, если id уже занят пользователем с другой ролью.
        """
        query = """
            INSERT INTO users (id, role, last_latitude, last_longitude, location_updated_at)
            VALUES ($1, $5, $2, $3, $4)
            ON CONFLICT (id) DO UPDATE
            SET last_latitude = EXCLUDED.last_latitude,
                last_longitude = EXCLUDED.last_longitude,
                location_updated_at = EXCLUDED.location_updated_at
            WHERE users.role = EXCLUDED.role
        """
        async with storage_errors("update driver location"):
            status = await self._db.execute(
                query, user_id, location.lat, location.lng, now, ParticipantRole.DRIVER.value
            )
        # asyncpg возвращает статус вида "INSERT 0 1"
        return status.split()[-1] != "0"

    async def list_available(self) -> list[NearbyDriver]:
        """Свободные водители с известной позицией."""
        query = """
            SELECT id, name, last_latitude, last_longitude, location_updated_at
            FROM users
            WHERE role = $1
              AND is_available = TRUE
              AND last_latitude IS NOT NULL
              AND last_longitude IS NOT NULL
            ORDER BY location_updated_at DESC NULLS LAST
        """
        async with storage_errors("list drivers"):
            rows = await self._db.fetch(query, ParticipantRole.DRIVER.value)
        return [
            NearbyDriver(
                id=row["id"],
                name=row["name"],
                location=Coordinate(lat=row["last_latitude"], lng=row["last_longitude"]),
                location_updated_at=row["location_updated_at"],
            )
            for row in rows
        ]
