# tests/core/test_rides_repository.py
"""
Тесты репозитория поездок.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from saferide.common.constants import ParticipantRole, RideStatus
from saferide.common.errors import StorageFailure
from saferide.core.rides.repository import RideRepository, row_to_ride
from saferide.shared.models.ride import Coordinate, RideDraft


@pytest.fixture
def ride_repository(mock_db: MagicMock) -> RideRepository:
    return RideRepository(db=mock_db)


@pytest.fixture
def draft(pickup, airport) -> RideDraft:
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    return RideDraft(
        rider_id=1,
        pickup=pickup,
        dropoff=airport,
        dropoff_label="Kotoka Airport",
        fare=Decimal("114.00"),
        requested_at=now,
        updated_at=now,
    )


class TestRowMapping:
    def test_row_to_ride(self, sample_ride_row) -> None:
        ride = row_to_ride(sample_ride_row)

        assert ride.id == sample_ride_row["id"]
        assert ride.pickup == Coordinate(lat=5.6037, lng=-0.1870)
        assert ride.status == RideStatus.REQUESTED
        assert ride.fare == Decimal("114.00")


class TestRideRepository:
    """Тесты RideRepository."""

    @pytest.mark.asyncio
    async def test_create_returns_stored_ride(
        self, ride_repository, mock_db, draft, sample_ride_row
    ) -> None:
        # Arrange
        mock_db.fetchrow.return_value = sample_ride_row

        # Act
        ride = await ride_repository.create(draft)

        # Assert
        assert ride.id == sample_ride_row["id"]
        query, *args = mock_db.fetchrow.call_args.args
        assert "INSERT INTO rides" in query
        assert "RETURNING" in query
        assert args[0] == 1
        assert args[1:5] == [draft.pickup.lat, draft.pickup.lng, draft.dropoff.lat, draft.dropoff.lng]
        assert args[7] == "requested"

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, ride_repository, mock_db) -> None:
        mock_db.fetchrow.return_value = None
        assert await ride_repository.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_try_accept_is_conditional(self, ride_repository, mock_db, sample_ride_row) -> None:
        """UPDATE затрагивает строку только в статусе requested без водителя."""
        accepted_row = {**sample_ride_row, "driver_id": 42, "status": "accepted"}
        mock_db.fetchrow.return_value = accepted_row
        now = datetime.now(timezone.utc)

        ride = await ride_repository.try_accept(sample_ride_row["id"], 42, now)

        query, *args = mock_db.fetchrow.call_args.args
        assert "status = $5" in query
        assert "driver_id IS NULL" in query
        assert args == [sample_ride_row["id"], 42, "accepted", now, "requested"]
        assert ride.driver_id == 42

    @pytest.mark.asyncio
    async def test_try_accept_lost_race(self, ride_repository, mock_db) -> None:
        mock_db.fetchrow.return_value = None
        result = await ride_repository.try_accept(uuid4(), 42, datetime.now(timezone.utc))
        assert result is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "role, column",
        [(ParticipantRole.RIDER, "rider_id"), (ParticipantRole.DRIVER, "driver_id")],
    )
    async def test_history_filter_column(self, ride_repository, mock_db, role, column) -> None:
        await ride_repository.history(5, role)

        query, user_id = mock_db.fetch.call_args.args
        assert f"WHERE {column} = $1" in query
        assert "ORDER BY requested_at DESC" in query
        assert user_id == 5

    @pytest.mark.asyncio
    async def test_history_rejects_unknown_role(self, ride_repository) -> None:
        with pytest.raises(ValueError):
            await ride_repository.history(5, "admin")

    @pytest.mark.asyncio
    async def test_driver_errors_become_storage_failure(self, ride_repository, mock_db, draft) -> None:
        mock_db.fetchrow = AsyncMock(side_effect=asyncpg.PostgresError("boom"))

        with pytest.raises(StorageFailure) as exc_info:
            await ride_repository.create(draft)

        assert isinstance(exc_info.value.__cause__, asyncpg.PostgresError)

    @pytest.mark.asyncio
    async def test_connection_errors_become_storage_failure(self, ride_repository, mock_db) -> None:
        mock_db.fetch = AsyncMock(side_effect=ConnectionRefusedError())

        with pytest.raises(StorageFailure):
            await ride_repository.history(1, ParticipantRole.RIDER)
