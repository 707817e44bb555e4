# saferide/infra/redis_client.py
"""
Клиент Redis.
Используется только как шина pub/sub, чтобы realtime-события
доходили до клиентов, подключённых к другим инстансам.
"""

from __future__ import annotations

import redis.asyncio as redis
from redis.asyncio.client import PubSub

from saferide.common.constants import TypeMsg
from saferide.common.logger import log_error, log_info


class RedisClient:
    """Асинхронный клиент Redis (Singleton)."""

    _instance: RedisClient | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client: redis.Redis | None = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    async def connect(self, url: str, max_connections: int = 20) -> None:
        """
        Подключается к Redis и проверяет соединение PING.

        Args:
            url: URL Redis
            max_connections: Максимальное количество соединений
        """
        if self._client is not None:
            return

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)
        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()
        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    async def publish(self, channel: str, message: str) -> int:
        """Публикует сообщение в канал. Возвращает число получателей."""
        return await self.client.publish(channel, message)

    def pubsub(self) -> PubSub:
        return self.client.pubsub()

    async def health_check(self) -> bool:
        try:
            return await self.client.ping()
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


def get_redis() -> RedisClient:
    return RedisClient()


async def init_redis() -> RedisClient:
    """Подключается к Redis по настройкам."""
    from saferide.config import settings

    client = get_redis()
    await client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
    )
    return client


async def close_redis() -> None:
    await get_redis().disconnect()
