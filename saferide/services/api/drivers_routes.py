# saferide/services/api/drivers_routes.py
"""
HTTP API водителей и платежей.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from saferide.common.constants import ParticipantRole
from saferide.common.errors import InvalidInput
from saferide.core.auth.service import Principal
from saferide.core.drivers.service import DriverService
from saferide.core.payments.repository import PaymentRepository
from saferide.services.api.dependencies import (
    get_driver_service,
    get_payment_repository,
    get_principal,
    require_role,
)
from saferide.shared.models.driver import LocationUpdateOut, NearbyDriver
from saferide.shared.models.payment import Earnings, Payment
from saferide.shared.models.ride import Coordinate

router = APIRouter(tags=["Drivers"])


@router.get("/drivers/nearby", response_model=list[NearbyDriver])
async def nearby_drivers(
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    radius_km: float | None = Query(default=None, ge=0),
    principal: Principal = Depends(get_principal),
    drivers: DriverService = Depends(get_driver_service),
) -> list[NearbyDriver]:
    """
    Свободные водители.
    С lat/lng результат отсортирован по расстоянию, radius_km ограничивает выборку.
    """
    if (lat is None) != (lng is None):
        raise InvalidInput("lat and lng must be passed together")
    origin = Coordinate(lat=lat, lng=lng) if lat is not None else None
    return await drivers.nearby(origin, radius_km)


@router.post("/drivers/location", response_model=LocationUpdateOut)
async def update_location(
    body: Coordinate,
    principal: Principal = Depends(require_role(ParticipantRole.DRIVER)),
    drivers: DriverService = Depends(get_driver_service),
) -> LocationUpdateOut:
    await drivers.update_location(principal.user_id, body)
    return LocationUpdateOut()


@router.get("/payments", response_model=list[Payment], tags=["Payments"])
async def list_payments(
    principal: Principal = Depends(get_principal),
    payments: PaymentRepository = Depends(get_payment_repository),
) -> list[Payment]:
    return await payments.list_for_user(principal.user_id)


@router.get("/driver/earnings", response_model=Earnings, tags=["Payments"])
async def driver_earnings(
    principal: Principal = Depends(require_role(ParticipantRole.DRIVER)),
    payments: PaymentRepository = Depends(get_payment_repository),
) -> Earnings:
    return await payments.driver_earnings(principal.user_id)
