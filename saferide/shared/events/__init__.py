# saferide/shared/events/__init__.py
"""
Realtime-события.
"""

from saferide.shared.events.base import EventMetadata, RealtimeEnvelope
from saferide.shared.events.ride_events import (
    ChatMessagePayload,
    DriverLocationPayload,
    RideAcceptedPayload,
)

__all__ = [
    "EventMetadata",
    "RealtimeEnvelope",
    "ChatMessagePayload",
    "DriverLocationPayload",
    "RideAcceptedPayload",
]
