# saferide/shared/models/ride.py
"""
DTO поездок и координат.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer

from saferide.common.constants import RideStatus


# Денежные суммы хранятся как Decimal с двумя знаками, в JSON уходят числом
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class Coordinate(BaseModel):
    """Точка на карте в градусах WGS84."""

    lat: float = Field(..., ge=-90, le=90, description="Широта")
    lng: float = Field(..., ge=-180, le=180, description="Долгота")

    class Config:
        frozen = True


class RideDraft(BaseModel):
    """Поездка до сохранения: идентификатор назначает хранилище."""

    rider_id: int
    pickup: Coordinate
    dropoff: Coordinate
    dropoff_label: str
    fare: Money
    status: RideStatus = RideStatus.REQUESTED
    requested_at: datetime
    updated_at: datetime


class Ride(BaseModel):
    """Сохранённая поездка."""

    id: UUID
    rider_id: int
    driver_id: int | None = None
    pickup: Coordinate
    dropoff: Coordinate
    dropoff_label: str
    fare: Money
    status: RideStatus
    requested_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FareQuote(BaseModel):
    """Предварительная оценка стоимости без создания поездки."""

    distance_km: float
    estimated_fare: Money
    dropoff_coords: Coordinate


# =============================================================================
# ЗАПРОСЫ API
# =============================================================================

class RideRequestIn(BaseModel):
    """Тело /api/rides/fare и /api/rides/request."""

    pickup: Coordinate
    dropoff: str = Field(..., min_length=1, max_length=512, description="Адрес назначения")


class AcceptRideIn(BaseModel):
    ride_id: UUID


class AcceptRideOut(BaseModel):
    success: bool = True
