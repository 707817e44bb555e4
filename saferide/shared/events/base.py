# saferide/shared/events/base.py
"""
Конверт realtime-события.
Одинаково используется при локальной доставке и при передаче через Redis.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class EventMetadata(BaseModel):
    """Метаданные для трассировки."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RealtimeEnvelope(BaseModel):
    """
    Событие для рассылки клиентам.

    room = None означает рассылку всем подключённым,
    иначе только участникам комнаты.
    """

    event: str
    data: dict[str, Any] = Field(default_factory=dict)
    room: str | None = None
    metadata: EventMetadata = Field(default_factory=EventMetadata)

    def to_frame(self) -> dict[str, Any]:
        """Кадр, который уходит в WebSocket."""
        return {"event": self.event, "data": self.data}

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> "RealtimeEnvelope":
        return cls.model_validate_json(data)
