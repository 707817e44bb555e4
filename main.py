#!/usr/bin/env python3
# main.py
"""
Точка входа Safe Ride.

Режимы:
    python main.py           - HTTP + WebSocket сервер
    python main.py migrate   - применить migrations/init.sql и выйти
"""

from __future__ import annotations

import asyncio
import sys

from saferide.common.constants import TypeMsg
from saferide.common.logger import log_info, setup_logging
from saferide.config import settings


async def run_api() -> None:
    """Запускает uvicorn с приложением saferide.services.api.app:app."""
    import uvicorn

    await log_info(
        f"Запуск Safe Ride на {settings.server.HOST}:{settings.server.PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "saferide.services.api.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )
    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Safe Ride: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_migrations() -> None:
    from saferide.infra.database import close_db, init_db

    await init_db(apply_schema=True)
    await close_db()


def print_usage() -> None:
    print(__doc__)


async def main(mode: str = "api") -> None:
    setup_logging()

    if mode == "migrate":
        await run_migrations()
    else:
        await run_api()


if __name__ == "__main__":
    mode = "api"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in ("api", "migrate"):
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode))
    except KeyboardInterrupt:
        pass
