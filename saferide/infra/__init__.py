# saferide/infra/__init__.py
"""
Инфраструктурный слой: PostgreSQL и Redis.
"""

from saferide.infra.database import DatabaseManager, get_db
from saferide.infra.redis_client import RedisClient, get_redis

__all__ = [
    "DatabaseManager",
    "get_db",
    "RedisClient",
    "get_redis",
]
