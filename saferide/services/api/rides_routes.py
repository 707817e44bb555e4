# saferide/services/api/rides_routes.py
"""
HTTP API поездок.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from saferide.common.constants import ParticipantRole
from saferide.core.auth.service import Principal
from saferide.core.rides.service import RideLifecycle
from saferide.services.api.dependencies import get_principal, get_ride_lifecycle, require_role
from saferide.shared.models.ride import (
    AcceptRideIn,
    AcceptRideOut,
    FareQuote,
    Ride,
    RideRequestIn,
)

router = APIRouter(prefix="/rides", tags=["Rides"])


@router.post("/fare", response_model=FareQuote)
async def calculate_fare(
    body: RideRequestIn,
    principal: Principal = Depends(get_principal),
    rides: RideLifecycle = Depends(get_ride_lifecycle),
) -> FareQuote:
    """Оценка стоимости поездки без её создания."""
    return await rides.quote(body.pickup, body.dropoff)


@router.post("/request", response_model=Ride)
async def request_ride(
    body: RideRequestIn,
    principal: Principal = Depends(require_role(ParticipantRole.RIDER)),
    rides: RideLifecycle = Depends(get_ride_lifecycle),
) -> Ride:
    return await rides.request_ride(principal.user_id, body.pickup, body.dropoff)


@router.post("/accept", response_model=AcceptRideOut)
async def accept_ride(
    body: AcceptRideIn,
    principal: Principal = Depends(require_role(ParticipantRole.DRIVER)),
    rides: RideLifecycle = Depends(get_ride_lifecycle),
) -> AcceptRideOut:
    await rides.accept_ride(principal.user_id, body.ride_id)
    return AcceptRideOut()


@router.get("/history", response_model=list[Ride])
async def ride_history(
    principal: Principal = Depends(get_principal),
    rides: RideLifecycle = Depends(get_ride_lifecycle),
) -> list[Ride]:
    """Поездки пользователя, новые первыми."""
    return await rides.history(principal.user_id, principal.role)
