# saferide/shared/events/ride_events.py
"""
Полезная нагрузка realtime-событий.
Событие ride_requested несёт сериализованную Ride целиком.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class RideAcceptedPayload(BaseModel):
    ride_id: UUID
    driver_id: int


class DriverLocationPayload(BaseModel):
    user_id: int
    lat: float
    lng: float


class ChatMessagePayload(BaseModel):
    message: str
