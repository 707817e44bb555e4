# saferide/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ParticipantRole(str, Enum):
    """Роль участника поездки."""
    RIDER = "rider"
    DRIVER = "driver"

    def __str__(self) -> str:
        return self.value


class RideStatus(str, Enum):
    """
    Статусы поездки.
    Дальнейшие состояния (in_progress, completed, cancelled) пока не поддерживаются.
    """
    REQUESTED = "requested"
    ACCEPTED = "accepted"

    def __str__(self) -> str:
        return self.value


class RealtimeEvent(str, Enum):
    """Имена событий realtime канала."""
    RIDE_REQUESTED = "ride_requested"
    RIDE_ACCEPTED = "ride_accepted"
    DRIVER_LOCATION = "driver_location"
    CHAT_MESSAGE = "chat_message"

    def __str__(self) -> str:
        return self.value


def ride_room(ride_id: object) -> str:
    """Ключ комнаты чата для поездки."""
    return f"ride_{ride_id}"
