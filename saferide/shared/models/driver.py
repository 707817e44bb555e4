# saferide/shared/models/driver.py
"""
DTO водителей: геопозиция и поиск поблизости.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from saferide.shared.models.ride import Coordinate


class NearbyDriver(BaseModel):
    id: int
    name: str
    location: Coordinate
    location_updated_at: datetime | None = None
    # заполняется только при поиске относительно точки
    distance_km: float | None = None


class LocationUpdateOut(BaseModel):
    success: bool = True
