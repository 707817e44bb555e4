# saferide/services/api/app.py
"""
FastAPI приложение Safe Ride.

HTTP:
- POST /api/rides/fare, /api/rides/request, /api/rides/accept
- GET  /api/rides/history
- GET  /api/drivers/nearby, POST /api/drivers/location
- GET  /api/payments, /api/driver/earnings
- GET  /health

WebSocket:
- /ws?token=<jwt>
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from saferide.common.constants import TypeMsg
from saferide.common.logger import log_info, setup_logging
from saferide.config import settings
from saferide.core.auth.service import AuthGate
from saferide.core.chat.repository import ChatRepository
from saferide.core.drivers.repository import DriverRepository
from saferide.core.drivers.service import DriverService
from saferide.core.geo.service import GeoService, MapboxGeocoder
from saferide.core.payments.repository import PaymentRepository
from saferide.core.pricing.service import booking_pricing, quote_pricing
from saferide.core.rides.repository import RideRepository
from saferide.core.rides.service import RideLifecycle
from saferide.infra.database import close_db, init_db
from saferide.infra.redis_client import close_redis, init_redis
from saferide.services.api.drivers_routes import router as drivers_router
from saferide.services.api.error_handlers import register_error_handlers
from saferide.services.api.rides_routes import router as rides_router
from saferide.services.realtime.connection_manager import ConnectionRegistry
from saferide.services.realtime.hub import NotificationHub
from saferide.services.realtime.redis_subscriber import RedisSubscriber
from saferide.services.realtime.routes import router as realtime_router
from saferide.shared.models.common import HealthStatus


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Поднимает инфраструктуру и собирает сервисы в app.state."""
    setup_logging()
    await log_info(
        f"Запуск {settings.system.PROJECT_NAME} {settings.system.VERSION} "
        f"({settings.system.ENVIRONMENT})",
        type_msg=TypeMsg.INFO,
    )

    db = await init_db()

    redis = None
    if settings.realtime.REALTIME_BACKPLANE == "redis":
        redis = await init_redis()

    registry = ConnectionRegistry(send_timeout=settings.realtime.REALTIME_SEND_TIMEOUT)
    hub = NotificationHub(
        registry,
        backplane=redis,
        channel=settings.realtime.REALTIME_CHANNEL,
        queue_size=settings.realtime.REALTIME_QUEUE_SIZE,
    )
    await hub.start()

    subscriber = None
    if redis is not None:
        subscriber = RedisSubscriber(redis, settings.realtime.REALTIME_CHANNEL, hub.deliver)
        await subscriber.start()

    geocoder = MapboxGeocoder()
    geo = GeoService(geocoder)

    quote, booking = quote_pricing(), booking_pricing()
    if quote.currency_multiplier != booking.currency_multiplier:
        await log_info(
            f"Множители квоты ({quote.currency_multiplier}) и бронирования "
            f"({booking.currency_multiplier}) различаются: /fare и /request вернут разные суммы в {booking.currency}",
            type_msg=TypeMsg.WARNING,
        )

    auth = AuthGate.from_settings()
    if not settings.auth.JWT_SECRET:
        await log_info("JWT_SECRET не задан: все запросы будут отклонены", type_msg=TypeMsg.WARNING)

    app.state.db = db
    app.state.redis = redis
    app.state.auth = auth
    app.state.registry = registry
    app.state.hub = hub
    app.state.rides = RideLifecycle(
        store=RideRepository(db),
        geo=geo,
        hub=hub,
        quote_pricing=quote,
        booking_pricing=booking,
    )
    app.state.drivers = DriverService(DriverRepository(db), hub)
    app.state.payments = PaymentRepository(db)
    app.state.chat = ChatRepository(db)

    try:
        yield
    finally:
        if subscriber is not None:
            await subscriber.stop()
        await hub.stop()
        await geocoder.close()
        if redis is not None:
            await close_redis()
        await close_db()
        await log_info("Safe Ride остановлен", type_msg=TypeMsg.INFO)


def create_app(with_lifespan: bool = True) -> FastAPI:
    """
    Args:
        with_lifespan: False для тестов, где app.state заполняется вручную
    """
    app = FastAPI(
        title="Safe Ride API",
        version=settings.system.VERSION,
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(rides_router, prefix="/api")
    app.include_router(drivers_router, prefix="/api")
    app.include_router(realtime_router)

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check(request: Request) -> HealthStatus:
        """Проверка здоровья сервиса и его зависимостей."""
        dependencies: dict[str, str] = {}

        db = getattr(request.app.state, "db", None)
        if db is not None:
            dependencies["postgres"] = "healthy" if await db.health_check() else "unhealthy"

        redis = getattr(request.app.state, "redis", None)
        if redis is not None:
            dependencies["redis"] = "healthy" if await redis.health_check() else "unhealthy"

        status = "healthy" if all(v == "healthy" for v in dependencies.values()) else "degraded"
        return HealthStatus(
            service=settings.system.PROJECT_NAME,
            status=status,
            version=settings.system.VERSION,
            dependencies=dependencies,
        )

    return app


app = create_app()
