# saferide/services/realtime/redis_subscriber.py
"""
Подписчик на Redis Pub/Sub.
Получает события, опубликованные любым инстансом, и передаёт их хабу
для доставки локальным клиентам.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from saferide.common.logger import log_error, log_warning
from saferide.infra.redis_client import RedisClient
from saferide.shared.events.base import RealtimeEnvelope


class RedisSubscriber:
    def __init__(
        self,
        redis: RedisClient,
        channel: str,
        handler: Callable[[RealtimeEnvelope], Awaitable[Any]],
    ) -> None:
        """
        Args:
            redis: Клиент Redis
            channel: Канал realtime-событий
            handler: Корутина доставки (обычно NotificationHub.deliver)
        """
        self._redis = redis
        self._channel = channel
        self._handler = handler
        self._pubsub = None
        self._task: asyncio.Task | None = None
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(self._channel)
        self._running = True
        self._task = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None

    async def _listen(self) -> None:
        while self._running:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )
                if message is None:
                    continue
                await self._process_message(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await log_error(f"Redis subscriber error: {e!r}")
                await asyncio.sleep(1)

    async def _process_message(self, message: dict[str, Any]) -> None:
        if message.get("type") != "message":
            return

        data = message.get("data", "")
        if isinstance(data, bytes):
            data = data.decode("utf-8")

        try:
            envelope = RealtimeEnvelope.from_json(data)
        except ValidationError as e:
            await log_warning(f"Некорректное сообщение в {self._channel}: {e}")
            return

        await self._handler(envelope)
