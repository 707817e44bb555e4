# saferide/services/realtime/connection_manager.py
"""
Реестр WebSocket соединений процесса.
Хранит соединения и комнаты, доставляет кадры локальным клиентам.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import WebSocket, status

from saferide.common.constants import ParticipantRole
from saferide.common.logger import log_debug, log_warning


@dataclass
class ConnectionInfo:
    """Информация о соединении."""
    websocket: WebSocket
    user_id: int
    role: ParticipantRole
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rooms: set[str] = field(default_factory=set)


class ConnectionRegistry:
    """
    Соединения и комнаты одного процесса.

    Создаётся при старте приложения и передаётся в NotificationHub.
    Один пользователь может держать несколько соединений (вкладки, устройства).
    """

    def __init__(self, send_timeout: float = 5.0) -> None:
        # connection_id -> ConnectionInfo
        self._connections: dict[str, ConnectionInfo] = {}
        # room -> connection_ids
        self._rooms: dict[str, set[str]] = {}
        self._send_timeout = send_timeout

    @property
    def active_connections(self) -> int:
        return len(self._connections)

    def get(self, connection_id: str) -> ConnectionInfo | None:
        return self._connections.get(connection_id)

    async def connect(
        self,
        websocket: WebSocket,
        user_id: int,
        role: ParticipantRole,
    ) -> str:
        """Принимает соединение и возвращает его идентификатор."""
        await websocket.accept()
        connection_id = str(uuid4())
        self._connections[connection_id] = ConnectionInfo(
            websocket=websocket,
            user_id=user_id,
            role=role,
        )
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        for room in conn.rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._rooms[room]

    def join_room(self, connection_id: str, room: str) -> bool:
        """Добавляет соединение в комнату. False, если соединения нет."""
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        conn.rooms.add(room)
        self._rooms.setdefault(room, set()).add(connection_id)
        return True

    def is_member(self, connection_id: str, room: str) -> bool:
        return connection_id in self._rooms.get(room, set())

    def room_members(self, room: str) -> set[str]:
        return self._rooms.get(room, set()).copy()

    async def broadcast_all(self, frame: dict[str, Any]) -> int:
        """Кадр всем подключённым. Возвращает количество успешных отправок."""
        return await self._send_many(list(self._connections), frame)

    async def send_to_room(self, room: str, frame: dict[str, Any]) -> int:
        """Кадр только участникам комнаты."""
        return await self._send_many(list(self._rooms.get(room, ())), frame)

    async def _send_many(self, connection_ids: list[str], frame: dict[str, Any]) -> int:
        results = await asyncio.gather(
            *(self._send(cid, frame) for cid in connection_ids)
        )
        return sum(results)

    async def _send(self, connection_id: str, frame: dict[str, Any]) -> bool:
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        try:
            await asyncio.wait_for(conn.websocket.send_json(frame), timeout=self._send_timeout)
        except Exception as e:
            # Соединение разорвано или не успевает читать: отключаем и закрываем без повторов
            await log_warning(
                f"Не удалось доставить {frame.get('event')} пользователю {conn.user_id}: {e!r}"
            )
            self.disconnect(connection_id)
            await self._close(conn)
            return False
        return True

    async def _close(self, conn: ConnectionInfo) -> None:
        """Закрывает сокет отключённого клиента, чтобы его цикл чтения завершился."""
        try:
            await asyncio.wait_for(
                conn.websocket.close(code=status.WS_1011_INTERNAL_ERROR),
                timeout=self._send_timeout,
            )
        except Exception as e:
            await log_debug(f"Сокет пользователя {conn.user_id} уже закрыт: {e!r}")

