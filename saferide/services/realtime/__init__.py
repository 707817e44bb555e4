# saferide/services/realtime/__init__.py
"""
Realtime-канал: реестр соединений, хаб уведомлений, WebSocket endpoint.
"""

from saferide.services.realtime.connection_manager import ConnectionInfo, ConnectionRegistry
from saferide.services.realtime.hub import NotificationHub
from saferide.services.realtime.redis_subscriber import RedisSubscriber

__all__ = ["ConnectionInfo", "ConnectionRegistry", "NotificationHub", "RedisSubscriber"]
