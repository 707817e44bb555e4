# saferide/core/drivers/service.py
"""
Водители: обновление геопозиции и поиск поблизости.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from saferide.common.constants import RealtimeEvent, TypeMsg
from saferide.common.errors import Conflict, InvalidInput
from saferide.common.logger import log_info
from saferide.core.drivers.repository import DriverRepository
from saferide.core.geo.service import GeoService
from saferide.core.rides.service import EventPublisher
from saferide.shared.events.ride_events import DriverLocationPayload
from saferide.shared.models.driver import NearbyDriver
from saferide.shared.models.ride import Coordinate


class DriverService:
    def __init__(
        self,
        repository: DriverRepository,
        hub: EventPublisher,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._repo = repository
        self._hub = hub
        self._clock = clock

    async def update_location(self, driver_id: int, location: Coordinate) -> None:
        """Сохраняет позицию и рассылает driver_location всем подключённым."""
        updated = await self._repo.update_location(driver_id, location, self._clock())
        if not updated:
            raise Conflict(f"User {driver_id} is registered with another role")

        await log_info(
            f"Позиция водителя {driver_id}: {location.lat:.5f}, {location.lng:.5f}",
            type_msg=TypeMsg.DEBUG,
        )
        payload = DriverLocationPayload(user_id=driver_id, lat=location.lat, lng=location.lng)
        self._hub.broadcast(RealtimeEvent.DRIVER_LOCATION.value, payload.model_dump(mode="json"))

    async def nearby(
        self,
        origin: Coordinate | None = None,
        radius_km: float | None = None,
    ) -> list[NearbyDriver]:
        """
        Свободные водители.

        Без origin возвращает всех с известной позицией.
        С origin добавляет distance_km и сортирует по возрастанию расстояния,
        с radius_km дополнительно отсекает дальних.
        """
        if radius_km is not None and origin is None:
            raise InvalidInput("radius_km requires lat and lng")
        if radius_km is not None and radius_km < 0:
            raise InvalidInput("radius_km must not be negative")

        drivers = await self._repo.list_available()
        if origin is None:
            return drivers

        measured = [
            d.model_copy(update={"distance_km": round(GeoService.distance(origin, d.location), 3)})
            for d in drivers
        ]
        if radius_km is not None:
            measured = [d for d in measured if d.distance_km <= radius_km]
        measured.sort(key=lambda d: d.distance_km)
        return measured
