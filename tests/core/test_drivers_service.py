# tests/core/test_drivers_service.py
"""
Тесты сервиса водителей.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from saferide.common.errors import Conflict, InvalidInput
from saferide.core.drivers.repository import DriverRepository
from saferide.core.drivers.service import DriverService
from saferide.shared.models.driver import NearbyDriver
from saferide.shared.models.ride import Coordinate


def _driver(driver_id: int, lat: float, lng: float) -> NearbyDriver:
    return NearbyDriver(id=driver_id, name=f"driver-{driver_id}", location=Coordinate(lat=lat, lng=lng))


@pytest.fixture
def repository() -> MagicMock:
    repo = MagicMock(spec=DriverRepository)
    repo.update_location = AsyncMock(return_value=True)
    repo.list_available = AsyncMock(
        return_value=[
            _driver(1, 6.6885, -1.6244),   # Кумаси, ~200 км
            _driver(2, 5.6052, -0.1668),   # аэропорт, ~2 км
            _driver(3, 5.6037, -0.1870),   # в точке запроса
        ]
    )
    return repo


@pytest.fixture
def service(repository, hub, clock) -> DriverService:
    return DriverService(repository, hub, clock=clock)


class TestUpdateLocation:
    @pytest.mark.asyncio
    async def test_persists_then_broadcasts(self, service, repository, hub) -> None:
        location = Coordinate(lat=5.6, lng=-0.18)

        await service.update_location(42, location)

        repository.update_location.assert_awaited_once()
        driver_id, saved, _now = repository.update_location.call_args.args
        assert (driver_id, saved) == (42, location)
        assert hub.events == [("driver_location", {"user_id": 42, "lat": 5.6, "lng": -0.18})]

    @pytest.mark.asyncio
    async def test_id_taken_by_rider(self, service, repository, hub) -> None:
        repository.update_location.return_value = False

        with pytest.raises(Conflict):
            await service.update_location(42, Coordinate(lat=5.6, lng=-0.18))

        assert hub.events == []


class TestNearby:
    @pytest.mark.asyncio
    async def test_without_origin_returns_all(self, service) -> None:
        drivers = await service.nearby()
        assert [d.id for d in drivers] == [1, 2, 3]
        assert all(d.distance_km is None for d in drivers)

    @pytest.mark.asyncio
    async def test_sorted_by_distance(self, service, pickup) -> None:
        drivers = await service.nearby(pickup)

        assert [d.id for d in drivers] == [3, 2, 1]
        assert drivers[0].distance_km == 0

    @pytest.mark.asyncio
    async def test_radius_filter(self, service, pickup) -> None:
        drivers = await service.nearby(pickup, radius_km=10)
        assert [d.id for d in drivers] == [3, 2]

    @pytest.mark.asyncio
    async def test_radius_requires_origin(self, service) -> None:
        with pytest.raises(InvalidInput):
            await service.nearby(None, radius_km=5)


class TestDriverRepository:
    @pytest.mark.asyncio
    async def test_first_location_creates_driver_row(self, mock_db) -> None:
        """Водитель из внешнего провайдера не обязан заранее существовать в users."""
        repo = DriverRepository(mock_db)
        mock_db.execute.return_value = "INSERT 0 1"
        now = datetime.now(timezone.utc)

        updated = await repo.update_location(9, Coordinate(lat=1, lng=2), now)

        assert updated is True
        query, *args = mock_db.execute.await_args.args
        assert "INSERT INTO users" in query
        assert "ON CONFLICT (id) DO UPDATE" in query
        assert args == [9, 1, 2, now, "driver"]

    @pytest.mark.asyncio
    async def test_update_location_role_mismatch(self, mock_db) -> None:
        repo = DriverRepository(mock_db)
        mock_db.execute.return_value = "INSERT 0 0"

        updated = await repo.update_location(1, Coordinate(lat=1, lng=2), datetime.now(timezone.utc))

        assert updated is False

    @pytest.mark.asyncio
    async def test_list_available_maps_rows(self, mock_db) -> None:
        mock_db.fetch.return_value = [
            {
                "id": 5,
                "name": "Kofi",
                "last_latitude": 5.6,
                "last_longitude": -0.18,
                "location_updated_at": None,
            }
        ]

        drivers = await DriverRepository(mock_db).list_available()

        assert drivers == [NearbyDriver(id=5, name="Kofi", location=Coordinate(lat=5.6, lng=-0.18))]
        assert mock_db.fetch.call_args.args[1] == "driver"
