# saferide/infra/database.py
"""
Пул соединений PostgreSQL.
Повторные попытки выполняются только при установке соединения,
запросы не ретраятся: ошибку получает вызывающий код.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncGenerator, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from saferide.common.constants import TypeMsg
from saferide.common.errors import StorageFailure
from saferide.common.logger import log_error, log_info

T = TypeVar("T")

# Идентификатор advisory lock для применения схемы
SCHEMA_LOCK_ID = 20240611

CONNECTION_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
)

# Ошибки драйвера, которые репозитории превращают в StorageFailure
STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Повторяет корутину при ошибках подключения с линейно растущей паузой.

    Args:
        max_attempts: Максимальное количество попыток
        delay: Базовая задержка между попытками (секунды)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except CONNECTION_ERRORS as e:
                    if attempt == max_attempts:
                        await log_error(
                            f"Не удалось подключиться к БД после {max_attempts} попыток: {e}"
                        )
                        raise
                    await log_info(
                        f"Ошибка подключения к БД (попытка {attempt}/{max_attempts}): {e}",
                        type_msg=TypeMsg.WARNING,
                    )
                    await asyncio.sleep(delay * attempt)
            raise RuntimeError("max_attempts должен быть >= 1")

        return wrapper  # type: ignore

    return decorator


class DatabaseManager:
    """Владелец пула asyncpg. Один экземпляр на процесс."""

    _instance: DatabaseManager | None = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._pool: Pool | None = None

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: int = 30,
        ssl: str | None = None,
        attempts: int = 3,
        delay: float = 1.0,
    ) -> None:
        """
        Создаёт пул соединений.

        Args:
            dsn: Строка подключения
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут команд (секунды)
            ssl: Режим SSL для asyncpg (require, verify-full, ...) или None
            attempts: Количество попыток подключения
            delay: Базовая задержка между попытками
        """
        if self._pool is not None:
            return

        @retry_on_connection_error(max_attempts=attempts, delay=delay)
        async def _create() -> Pool:
            return await asyncpg.create_pool(
                dsn=dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=command_timeout,
                ssl=ssl,
            )

        await log_info("Подключение к PostgreSQL...", type_msg=TypeMsg.INFO)
        self._pool = await _create()
        await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """
        Соединение из пула.

        Example:
            async with db.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM rides")
        """
        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """Соединение внутри транзакции: commit при успехе, rollback при ошибке."""
        async with self.pool.acquire() as connection:
            async with connection.transaction():
                yield connection

    async def execute(self, query: str, *args: Any) -> str:
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def health_check(self) -> bool:
        """True, если база отвечает на SELECT 1."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


def get_db() -> DatabaseManager:
    """Глобальный экземпляр DatabaseManager."""
    return DatabaseManager()


async def init_db(apply_schema: bool = True) -> DatabaseManager:
    """
    Подключается к базе по настройкам и применяет migrations/init.sql.

    Args:
        apply_schema: Применять ли схему после подключения
    """
    from saferide.config import settings

    db_settings = settings.database
    db = get_db()
    await db.connect(
        dsn=db_settings.dsn,
        min_size=db_settings.DB_MIN_POOL_SIZE,
        max_size=db_settings.DB_MAX_POOL_SIZE,
        command_timeout=db_settings.DB_COMMAND_TIMEOUT,
        ssl=db_settings.DB_SSL,
        attempts=db_settings.DB_CONNECT_ATTEMPTS,
        delay=db_settings.DB_CONNECT_DELAY,
    )

    if apply_schema:
        await apply_schema_file(db)
    return db


async def apply_schema_file(db: DatabaseManager) -> None:
    """
    Применяет migrations/init.sql под advisory lock,
    чтобы несколько инстансов не применяли схему одновременно.
    Скрипт идемпотентен (CREATE ... IF NOT EXISTS).
    """
    from saferide.config.loader import get_project_root

    schema_path = get_project_root() / "migrations" / "init.sql"
    if not schema_path.exists():
        await log_error(f"Файл схемы БД не найден: {schema_path}")
        raise FileNotFoundError(str(schema_path))

    with open(schema_path, "r", encoding="utf-8") as f:
        schema_sql = f.read()

    await log_info("Применение схемы БД...", type_msg=TypeMsg.INFO)
    async with db.transaction() as conn:
        await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_ID)
        await conn.execute(schema_sql)
    await log_info("Схема БД успешно применена", type_msg=TypeMsg.INFO)


async def close_db() -> None:
    await get_db().disconnect()


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncGenerator[None, None]:
    """
    Переводит ошибки драйвера БД в StorageFailure.

    Example:
        async with storage_errors("create ride"):
            row = await db.fetchrow(...)
    """
    try:
        yield
    except STORAGE_ERRORS as e:
        await log_error(f"Ошибка хранилища ({operation}): {e!r}")
        raise StorageFailure(f"Storage failure during {operation}") from e
