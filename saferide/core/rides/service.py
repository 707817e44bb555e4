# saferide/core/rides/service.py
"""
Жизненный цикл поездки: оценка, заказ, принятие водителем, история.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Protocol
from uuid import UUID

from saferide.common.constants import ParticipantRole, RealtimeEvent, RideStatus, TypeMsg
from saferide.common.errors import Conflict, RideNotFound
from saferide.common.logger import log_info
from saferide.core.geo.service import GeoService
from saferide.core.pricing.service import FareCalculator, PricingModel
from saferide.core.rides.repository import RideStore
from saferide.core.rides.state_machine import RideStateMachine
from saferide.shared.events.ride_events import RideAcceptedPayload
from saferide.shared.models.ride import Coordinate, FareQuote, Ride, RideDraft


class EventPublisher(Protocol):
    """Неблокирующая рассылка realtime-событий."""

    def broadcast(self, event_name: str, payload: dict) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RideLifecycle:
    """
    Оркестрация операций с поездкой.

    Порядок всегда один: сначала запись в хранилище, затем рассылка.
    Ошибки нижних слоёв пробрасываются без изменений.
    """

    def __init__(
        self,
        store: RideStore,
        geo: GeoService,
        hub: EventPublisher,
        quote_pricing: PricingModel,
        booking_pricing: PricingModel,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._geo = geo
        self._hub = hub
        self._quote_pricing = quote_pricing
        self._booking_pricing = booking_pricing
        self._clock = clock

    async def quote(self, pickup: Coordinate, dropoff_name: str) -> FareQuote:
        """Оценка стоимости без сохранения и рассылки."""
        dropoff = await self._geo.resolve(dropoff_name)
        distance = self._geo.distance(pickup, dropoff)
        fare = FareCalculator.estimate(distance, self._quote_pricing)
        return FareQuote(
            distance_km=round(distance, 2),
            estimated_fare=fare,
            dropoff_coords=dropoff,
        )

    async def request_ride(self, rider_id: int, pickup: Coordinate, dropoff_name: str) -> Ride:
        """
        Создаёт поездку в статусе requested и рассылает ride_requested.

        Геокодирование и расчёт выполняются до записи,
        поэтому при их ошибке поездка не создаётся.
        """
        dropoff = await self._geo.resolve(dropoff_name)
        distance = self._geo.distance(pickup, dropoff)
        fare = FareCalculator.estimate(distance, self._booking_pricing)

        now = self._clock()
        ride = await self._store.create(
            RideDraft(
                rider_id=rider_id,
                pickup=pickup,
                dropoff=dropoff,
                dropoff_label=dropoff_name,
                fare=fare,
                status=RideStatus.REQUESTED,
                requested_at=now,
                updated_at=now,
            )
        )

        await log_info(
            f"Поездка {ride.id} создана: rider={rider_id}, {distance:.2f} км, fare={ride.fare} {self._booking_pricing.currency}",
            type_msg=TypeMsg.INFO,
        )
        self._hub.broadcast(RealtimeEvent.RIDE_REQUESTED.value, ride.model_dump(mode="json"))
        return ride

    async def accept_ride(self, driver_id: int, ride_id: UUID) -> Ride:
        """
        Назначает водителя на поездку.

        Raises:
            RideNotFound: поездки нет
            Conflict: поездка уже принята (в том числе параллельным запросом)
        """
        ride = await self._store.get_by_id(ride_id)
        if ride is None:
            raise RideNotFound(f"Ride {ride_id} not found")

        if ride.driver_id is not None or not RideStateMachine.can_transition(
            ride.status, RideStatus.ACCEPTED
        ):
            raise Conflict(f"Ride {ride_id} is already {ride.status}")

        accepted = await self._store.try_accept(ride_id, driver_id, self._clock())
        if accepted is None:
            await log_info(
                f"Поездка {ride_id} уже принята другим водителем (driver={driver_id})",
                type_msg=TypeMsg.WARNING,
            )
            raise Conflict(f"Ride {ride_id} was accepted by another driver")

        await log_info(f"Поездка {ride_id} принята водителем {driver_id}", type_msg=TypeMsg.INFO)
        payload = RideAcceptedPayload(ride_id=accepted.id, driver_id=driver_id)
        self._hub.broadcast(RealtimeEvent.RIDE_ACCEPTED.value, payload.model_dump(mode="json"))
        return accepted

    async def history(self, user_id: int, role: ParticipantRole) -> list[Ride]:
        """Поездки, где пользователь водитель (для водителей) или пассажир, новые первыми."""
        return await self._store.history(user_id, role)
