# saferide/config/loader.py
"""
Загрузчик конфигурации Safe Ride.
Источник истины: config/config.json.
Секреты и параметры окружения переопределяются из переменных окружения (.env).
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ПУТИ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """
    Загружает config.json и возвращает словарь без служебных ключей _comment_*.

    Args:
        path: Путь к файлу (по умолчанию config/config.json)
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# СЕКЦИИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "safe_ride"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class ServerSettings(BaseModel):
    """Настройки HTTP сервера."""
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/safe_ride.log"
    LOG_MAX_BYTES: int = 10485760


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "safe_ride"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_SSL: str | None = None
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30
    DB_CONNECT_ATTEMPTS: int = 3
    DB_CONNECT_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_password_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """DSN для подключения. DATABASE_URL имеет приоритет над отдельными полями."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis (шина realtime-событий)."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_MAX_CONNECTIONS: int = 20

    @property
    def url(self) -> str:
        """URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class AuthSettings(BaseModel):
    """Настройки проверки bearer-токенов."""
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: int = 168

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def get_secret_from_env(cls, v: str) -> str:
        """Получает секрет из переменных окружения."""
        if not v:
            return os.getenv("JWT_SECRET", "")
        return v


class GeocoderSettings(BaseModel):
    """Настройки внешнего геокодера (Mapbox)."""
    MAPBOX_TOKEN: str = ""
    GEOCODING_URL: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    GEOCODER_TIMEOUT: float = 10.0

    @field_validator("MAPBOX_TOKEN", mode="before")
    @classmethod
    def get_token_from_env(cls, v: str) -> str:
        """Получает токен Mapbox из переменных окружения."""
        if not v:
            return os.getenv("MAPBOX_TOKEN", "")
        return v


class FareSettings(BaseModel):
    """
    Тарифы.

    Квота (/fare) и бронирование (/request) используют один калькулятор,
    но разные валютные множители.
    """
    BASE_FARE: float = 5.0
    FARE_PER_KM: float = 2.0
    QUOTE_CURRENCY_MULTIPLIER: float = 1.0
    BOOKING_CURRENCY_MULTIPLIER: float = 12.0
    CURRENCY: str = "GHS"


class RealtimeSettings(BaseModel):
    """Настройки realtime канала."""
    REALTIME_BACKPLANE: str = "memory"  # memory | redis
    REALTIME_CHANNEL: str = "saferide:realtime"
    REALTIME_QUEUE_SIZE: int = 1000
    REALTIME_SEND_TIMEOUT: float = 5.0

    @field_validator("REALTIME_BACKPLANE")
    @classmethod
    def check_backplane(cls, v: str) -> str:
        if v not in ("memory", "redis"):
            raise ValueError(f"Неизвестный backplane: {v}")
        return v


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Настройки приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    geocoder: GeocoderSettings = Field(default_factory=GeocoderSettings)
    fares: FareSettings = Field(default_factory=FareSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """
        Создаёт Settings из config.json.
        Секреты и адреса инфраструктуры переопределяются из окружения.
        """
        data = load_config_json(path)

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "safe_ride"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            server=ServerSettings(
                HOST=data.get("HOST", "0.0.0.0"),
                PORT=int(os.getenv("PORT", data.get("PORT", 3000))),
                CORS_ORIGINS=data.get("CORS_ORIGINS", ["*"]),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/safe_ride.log"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            database=DatabaseSettings(
                DATABASE_URL=os.getenv("DATABASE_URL", data.get("DATABASE_URL", "")),
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "safe_ride")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_SSL=os.getenv("DB_SSL", data.get("DB_SSL")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
                DB_CONNECT_ATTEMPTS=data.get("DB_CONNECT_ATTEMPTS", 3),
                DB_CONNECT_DELAY=data.get("DB_CONNECT_DELAY", 1.0),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 20),
            ),
            auth=AuthSettings(
                JWT_SECRET=os.getenv("JWT_SECRET", data.get("JWT_SECRET", "")),
                JWT_ALGORITHM=data.get("JWT_ALGORITHM", "HS256"),
                TOKEN_TTL_HOURS=data.get("TOKEN_TTL_HOURS", 168),
            ),
            geocoder=GeocoderSettings(
                MAPBOX_TOKEN=os.getenv("MAPBOX_TOKEN", data.get("MAPBOX_TOKEN", "")),
                GEOCODING_URL=data.get(
                    "GEOCODING_URL", "https://api.mapbox.com/geocoding/v5/mapbox.places"
                ),
                GEOCODER_TIMEOUT=data.get("GEOCODER_TIMEOUT", 10.0),
            ),
            fares=FareSettings(
                BASE_FARE=data.get("BASE_FARE", 5.0),
                FARE_PER_KM=data.get("FARE_PER_KM", 2.0),
                QUOTE_CURRENCY_MULTIPLIER=data.get("QUOTE_CURRENCY_MULTIPLIER", 1.0),
                BOOKING_CURRENCY_MULTIPLIER=data.get("BOOKING_CURRENCY_MULTIPLIER", 12.0),
                CURRENCY=data.get("CURRENCY", "GHS"),
            ),
            realtime=RealtimeSettings(
                REALTIME_BACKPLANE=os.getenv(
                    "REALTIME_BACKPLANE", data.get("REALTIME_BACKPLANE", "memory")
                ),
                REALTIME_CHANNEL=data.get("REALTIME_CHANNEL", "saferide:realtime"),
                REALTIME_QUEUE_SIZE=data.get("REALTIME_QUEUE_SIZE", 1000),
                REALTIME_SEND_TIMEOUT=data.get("REALTIME_SEND_TIMEOUT", 5.0),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек.
    Перед чтением config.json подгружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
