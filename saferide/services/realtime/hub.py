# saferide/services/realtime/hub.py
"""
Хаб realtime-уведомлений.

broadcast и send_to_room только кладут событие в очередь и сразу возвращаются.
Доставку выполняет отдельная задача-диспетчер: локально через реестр
соединений или через Redis, если включён backplane.
"""

from __future__ import annotations

import asyncio
from typing import Any

from saferide.common.constants import TypeMsg
from saferide.common.logger import get_logger, log_error, log_info
from saferide.infra.redis_client import RedisClient
from saferide.services.realtime.connection_manager import ConnectionRegistry
from saferide.shared.events.base import RealtimeEnvelope


class NotificationHub:
    """
    Best-effort рассылка: не более одного раза, без повторов и без истории.
    Ошибки доставки логируются и не доходят до HTTP-запроса.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        backplane: RedisClient | None = None,
        channel: str = "saferide:realtime",
        queue_size: int = 1000,
    ) -> None:
        self._registry = registry
        self._backplane = backplane
        self._channel = channel
        self._queue: asyncio.Queue[RealtimeEnvelope] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task | None = None
        self._dropped = 0

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def dropped(self) -> int:
        """Количество событий, отброшенных из-за переполнения очереди."""
        return self._dropped

    # =========================================================================
    # ПУБЛИКАЦИЯ
    # =========================================================================

    def broadcast(self, event_name: str, payload: dict[str, Any]) -> None:
        """Событие всем подключённым участникам."""
        self._enqueue(RealtimeEnvelope(event=event_name, data=payload))

    def send_to_room(self, room: str, event_name: str, payload: dict[str, Any]) -> None:
        """Событие только участникам комнаты."""
        self._enqueue(RealtimeEnvelope(event=event_name, data=payload, room=room))

    def join_room(self, connection_id: str, room: str) -> bool:
        return self._registry.join_room(connection_id, room)

    def _enqueue(self, envelope: RealtimeEnvelope) -> None:
        try:
            self._queue.put_nowait(envelope)
        except asyncio.QueueFull:
            self._dropped += 1
            # синхронный путь запроса: логируем без await
            get_logger().warning(
                f"Очередь realtime переполнена, событие {envelope.event} отброшено"
            )

    # =========================================================================
    # ДОСТАВКА
    # =========================================================================

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._dispatch())
        mode = "redis" if self._backplane else "memory"
        await log_info(f"Realtime хаб запущен (backplane: {mode})", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def flush(self) -> None:
        """Ждёт, пока диспетчер обработает всё, что уже в очереди."""
        await self._queue.join()

    async def _dispatch(self) -> None:
        while True:
            envelope = await self._queue.get()
            try:
                await self._route(envelope)
            except Exception as e:
                await log_error(f"Ошибка доставки события {envelope.event}: {e!r}")
            finally:
                self._queue.task_done()

    async def _route(self, envelope: RealtimeEnvelope) -> None:
        if self._backplane is None:
            await self.deliver(envelope)
            return
        try:
            # Событие вернётся через подписчика на всех инстансах, включая этот
            await self._backplane.publish(self._channel, envelope.to_json())
        except Exception as e:
            await log_error(f"Redis недоступен, событие {envelope.event} доставлено только локально: {e!r}")
            await self.deliver(envelope)

    async def deliver(self, envelope: RealtimeEnvelope) -> int:
        """Доставка клиентам этого процесса."""
        frame = envelope.to_frame()
        if envelope.room is None:
            return await self._registry.broadcast_all(frame)
        return await self._registry.send_to_room(envelope.room, frame)
