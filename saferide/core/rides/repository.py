# saferide/core/rides/repository.py
"""
Хранилище поездок в PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Protocol
from uuid import UUID

from saferide.common.constants import ParticipantRole, RideStatus
from saferide.common.errors import StorageFailure
from saferide.infra.database import DatabaseManager, storage_errors
from saferide.shared.models.ride import Coordinate, Ride, RideDraft


RIDE_COLUMNS = """
    id, rider_id, driver_id,
    pickup_latitude, pickup_longitude,
    dropoff_latitude, dropoff_longitude, dropoff_label,
    fare, status, requested_at, updated_at
"""

# Колонка фильтра выбирается только из этой таблицы, не из пользовательского ввода
_HISTORY_QUERIES: dict[ParticipantRole, str] = {
    ParticipantRole.RIDER: f"""
        SELECT {RIDE_COLUMNS} FROM rides
        WHERE rider_id = $1
        ORDER BY requested_at DESC
    """,
    ParticipantRole.DRIVER: f"""
        SELECT {RIDE_COLUMNS} FROM rides
        WHERE driver_id = $1
        ORDER BY requested_at DESC
    """,
}


class RideStore(Protocol):
    """Контракт хранилища поездок."""

    async def create(self, draft: RideDraft) -> Ride: ...

    async def get_by_id(self, ride_id: UUID) -> Ride | None: ...

    async def try_accept(self, ride_id: UUID, driver_id: int, now: datetime) -> Ride | None: ...

    async def history(self, user_id: int, role: ParticipantRole) -> list[Ride]: ...


def row_to_ride(row: Mapping[str, Any]) -> Ride:
    return Ride(
        id=row["id"],
        rider_id=row["rider_id"],
        driver_id=row["driver_id"],
        pickup=Coordinate(lat=row["pickup_latitude"], lng=row["pickup_longitude"]),
        dropoff=Coordinate(lat=row["dropoff_latitude"], lng=row["dropoff_longitude"]),
        dropoff_label=row["dropoff_label"],
        fare=row["fare"],
        status=RideStatus(row["status"]),
        requested_at=row["requested_at"],
        updated_at=row["updated_at"],
    )


class RideRepository:
    """Поездки в таблице rides."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create(self, draft: RideDraft) -> Ride:
        """Сохраняет поездку и возвращает запись с назначенным id."""
        query = f"""
            INSERT INTO rides (
                rider_id,
                pickup_latitude, pickup_longitude,
                dropoff_latitude, dropoff_longitude, dropoff_label,
                fare, status, requested_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            RETURNING {RIDE_COLUMNS}
        """
        async with storage_errors("create ride"):
            row = await self._db.fetchrow(
                query,
                draft.rider_id,
                draft.pickup.lat,
                draft.pickup.lng,
                draft.dropoff.lat,
                draft.dropoff.lng,
                draft.dropoff_label,
                draft.fare,
                draft.status.value,
                draft.requested_at,
                draft.updated_at,
            )
        if row is None:
            raise StorageFailure("Insert returned no row")
        return row_to_ride(row)

    async def get_by_id(self, ride_id: UUID) -> Ride | None:
        query = f"SELECT {RIDE_COLUMNS} FROM rides WHERE id = $1"
        async with storage_errors("get ride"):
            row = await self._db.fetchrow(query, ride_id)
        return row_to_ride(row) if row else None

    async def try_accept(self, ride_id: UUID, driver_id: int, now: datetime) -> Ride | None:
        """
        Атомарно назначает водителя.

        Условие в WHERE делает запись единственной точкой принятия решения:
        из нескольких одновременных запросов строку обновит только один.
        Возвращает None, если поездка уже не в статусе requested.
        """
        query = f"""
            UPDATE rides
            SET driver_id = $2, status = $3, updated_at = $4
            WHERE id = $1 AND status = $5 AND driver_id IS NULL
            RETURNING {RIDE_COLUMNS}
        """
        async with storage_errors("accept ride"):
            row = await self._db.fetchrow(
                query,
                ride_id,
                driver_id,
                RideStatus.ACCEPTED.value,
                now,
                RideStatus.REQUESTED.value,
            )
        return row_to_ride(row) if row else None

    async def history(self, user_id: int, role: ParticipantRole) -> list[Ride]:
        """Поездки пользователя, новые первыми."""
        query = _HISTORY_QUERIES[ParticipantRole(role)]
        async with storage_errors("ride history"):
            rows = await self._db.fetch(query, user_id)
        return [row_to_ride(row) for row in rows]

