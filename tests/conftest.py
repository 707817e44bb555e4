# tests/conftest.py
"""
Общие фикстуры и тестовые двойники.
"""

from __future__ import annotations

import asyncio
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("MAPBOX_TOKEN", "test_mapbox_token")
os.environ.setdefault("REALTIME_BACKPLANE", "memory")

from saferide.common.constants import ParticipantRole, RideStatus  # noqa: E402
from saferide.core.auth.service import AuthGate  # noqa: E402
from saferide.core.geo.service import GeoService  # noqa: E402
from saferide.core.pricing.service import PricingModel  # noqa: E402
from saferide.core.rides.service import RideLifecycle  # noqa: E402
from saferide.services.realtime.connection_manager import ConnectionRegistry  # noqa: E402
from saferide.shared.models.payment import Earnings  # noqa: E402
from saferide.shared.models.ride import Coordinate, Ride, RideDraft  # noqa: E402


ACCRA_CENTRAL = Coordinate(lat=5.6037, lng=-0.1870)
KOTOKA_AIRPORT = Coordinate(lat=5.6052, lng=-0.1668)

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# ТЕСТОВЫЕ ДВОЙНИКИ
# =============================================================================

class InMemoryRideStore:
    """
    Хранилище поездок в памяти с теми же гарантиями, что и PostgreSQL:
    try_accept проверяет и меняет состояние за один неделимый шаг.
    """

    def __init__(self) -> None:
        self.rides: dict[UUID, Ride] = {}
        self.fail_with: Exception | None = None

    @property
    def count(self) -> int:
        return len(self.rides)

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def create(self, draft: RideDraft) -> Ride:
        await asyncio.sleep(0)
        self._check_failure()
        ride = Ride(id=uuid4(), driver_id=None, **draft.model_dump())
        self.rides[ride.id] = ride
        return ride

    async def get_by_id(self, ride_id: UUID) -> Ride | None:
        await asyncio.sleep(0)
        self._check_failure()
        return self.rides.get(ride_id)

    async def try_accept(self, ride_id: UUID, driver_id: int, now: datetime) -> Ride | None:
        # Передаём управление, чтобы параллельные запросы перемешались
        await asyncio.sleep(0)
        self._check_failure()
        ride = self.rides.get(ride_id)
        if ride is None or ride.status != RideStatus.REQUESTED or ride.driver_id is not None:
            return None
        accepted = ride.model_copy(
            update={"driver_id": driver_id, "status": RideStatus.ACCEPTED, "updated_at": now}
        )
        self.rides[ride_id] = accepted
        return accepted

    async def history(self, user_id: int, role: ParticipantRole) -> list[Ride]:
        await asyncio.sleep(0)
        self._check_failure()
        if role == ParticipantRole.DRIVER:
            matched = [r for r in self.rides.values() if r.driver_id == user_id]
        else:
            matched = [r for r in self.rides.values() if r.rider_id == user_id]
        return sorted(matched, key=lambda r: r.requested_at, reverse=True)


class FakeGeocoder:
    """Геокодер с заранее заданными ответами."""

    def __init__(self, places: dict[str, Coordinate] | None = None) -> None:
        self.places = places if places is not None else {"Kotoka Airport": KOTOKA_AIRPORT}
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def lookup(self, text: str, limit: int = 1) -> list[Coordinate]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        match = self.places.get(text)
        return [match] if match else []

    async def close(self) -> None:
        return None


class RecordingHub:
    """
    Хаб, запоминающий события вместо рассылки.
    join_room делегирует реестру, если он задан.
    """

    def __init__(self, registry: Any = None) -> None:
        self.registry = registry
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.room_events: list[tuple[str, str, dict[str, Any]]] = []

    def broadcast(self, event_name: str, payload: dict[str, Any]) -> None:
        self.events.append((event_name, payload))

    def send_to_room(self, room: str, event_name: str, payload: dict[str, Any]) -> None:
        self.room_events.append((room, event_name, payload))

    def join_room(self, connection_id: str, room: str) -> bool:
        if self.registry is None:
            return False
        return self.registry.join_room(connection_id, room)


class Clock:
    """Управляемые часы: каждый вызов сдвигает время на минуту."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


# =============================================================================
# ФИКСТУРЫ
# =============================================================================

@pytest.fixture
def ride_store() -> InMemoryRideStore:
    return InMemoryRideStore()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def quote_pricing() -> PricingModel:
    return PricingModel.of(5, 2, 1)


@pytest.fixture
def booking_pricing() -> PricingModel:
    return PricingModel.of(5, 2, 12)


@pytest.fixture
def lifecycle(
    ride_store: InMemoryRideStore,
    geocoder: FakeGeocoder,
    hub: RecordingHub,
    quote_pricing: PricingModel,
    booking_pricing: PricingModel,
    clock: Clock,
) -> RideLifecycle:
    return RideLifecycle(
        store=ride_store,
        geo=GeoService(geocoder),
        hub=hub,
        quote_pricing=quote_pricing,
        booking_pricing=booking_pricing,
        clock=clock,
    )


@pytest.fixture
def mock_db() -> MagicMock:
    """Мок менеджера базы данных."""
    db = MagicMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def sample_ride_row() -> dict[str, Any]:
    """Строка таблицы rides."""
    return {
        "id": uuid4(),
        "rider_id": 1,
        "driver_id": None,
        "pickup_latitude": ACCRA_CENTRAL.lat,
        "pickup_longitude": ACCRA_CENTRAL.lng,
        "dropoff_latitude": KOTOKA_AIRPORT.lat,
        "dropoff_longitude": KOTOKA_AIRPORT.lng,
        "dropoff_label": "Kotoka Airport",
        "fare": Decimal("114.00"),
        "status": "requested",
        "requested_at": BASE_TIME,
        "updated_at": BASE_TIME,
    }


@pytest.fixture
def pickup() -> Coordinate:
    return ACCRA_CENTRAL


@pytest.fixture
def airport() -> Coordinate:
    return KOTOKA_AIRPORT


@pytest.fixture
def clock() -> Clock:
    return Clock()


# =============================================================================
# HTTP / WEBSOCKET
# =============================================================================

@pytest.fixture
def auth_gate() -> AuthGate:
    return AuthGate(secret="test_jwt_secret")


@pytest.fixture
def driver_service() -> MagicMock:
    service = MagicMock()
    service.nearby = AsyncMock(return_value=[])
    service.update_location = AsyncMock(return_value=None)
    return service


@pytest.fixture
def payment_repository() -> MagicMock:
    repo = MagicMock()
    repo.list_for_user = AsyncMock(return_value=[])
    repo.driver_earnings = AsyncMock(return_value=Earnings())
    return repo


@pytest.fixture
def chat_repository() -> MagicMock:
    repo = MagicMock()
    repo.save_message_quietly = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def api_app(
    lifecycle: RideLifecycle,
    hub: RecordingHub,
    auth_gate: AuthGate,
    driver_service: MagicMock,
    payment_repository: MagicMock,
    chat_repository: MagicMock,
):
    """Приложение без lifespan: сервисы подставляются в app.state напрямую."""
    from saferide.services.api.app import create_app

    app = create_app(with_lifespan=False)
    registry = ConnectionRegistry()
    hub.registry = registry

    app.state.auth = auth_gate
    app.state.registry = registry
    app.state.hub = hub
    app.state.rides = lifecycle
    app.state.drivers = driver_service
    app.state.payments = payment_repository
    app.state.chat = chat_repository
    return app


@pytest.fixture
def client(api_app) -> TestClient:
    return TestClient(api_app)


@pytest.fixture
def rider_token(auth_gate: AuthGate) -> str:
    return auth_gate.issue_token(1, ParticipantRole.RIDER)


@pytest.fixture
def driver_token(auth_gate: AuthGate) -> str:
    return auth_gate.issue_token(2, ParticipantRole.DRIVER)


@pytest.fixture
def rider_headers(rider_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {rider_token}"}


@pytest.fixture
def driver_headers(driver_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {driver_token}"}
