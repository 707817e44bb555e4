# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from saferide.config.loader import (
    DatabaseSettings,
    RealtimeSettings,
    RedisSettings,
    Settings,
    get_config_path,
    get_project_root,
    load_config_json,
)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "_comment_fares": "тарифы",
                "PROJECT_NAME": "safe_ride_test",
                "BASE_FARE": 7.5,
                "FARE_PER_KM": 3,
                "BOOKING_CURRENCY_MULTIPLIER": 10,
                "DB_NAME": "from_json",
            }
        ),
        encoding="utf-8",
    )
    return path


class TestPaths:
    def test_project_root_contains_config(self) -> None:
        assert (get_project_root() / "config").exists()

    def test_config_path(self) -> None:
        path = get_config_path()
        assert path.name == "config.json"
        assert path.parent.name == "config"

    def test_repository_config_is_valid(self) -> None:
        assert "BASE_FARE" in load_config_json()


class TestLoadConfigJson:
    def test_comments_are_stripped(self, config_file: Path) -> None:
        data = load_config_json(config_file)

        assert "_comment_fares" not in data
        assert data["PROJECT_NAME"] == "safe_ride_test"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config_json(tmp_path / "missing.json")


class TestFromConfigJson:
    def test_values_from_json(self, config_file: Path) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings.from_config_json(config_file)

        assert settings.system.PROJECT_NAME == "safe_ride_test"
        assert settings.fares.BASE_FARE == 7.5
        assert settings.fares.FARE_PER_KM == 3
        assert settings.fares.BOOKING_CURRENCY_MULTIPLIER == 10
        # значения по умолчанию для отсутствующих ключей
        assert settings.fares.QUOTE_CURRENCY_MULTIPLIER == 1.0
        assert settings.realtime.REALTIME_BACKPLANE == "memory"

    def test_environment_overrides_json(self, config_file: Path) -> None:
        env = {"DB_NAME": "from_env", "JWT_SECRET": "s3cret", "MAPBOX_TOKEN": "pk.test"}
        with patch.dict("os.environ", env, clear=True):
            settings = Settings.from_config_json(config_file)

        assert settings.database.DB_NAME == "from_env"
        assert settings.auth.JWT_SECRET == "s3cret"
        assert settings.geocoder.MAPBOX_TOKEN == "pk.test"

    def test_invalid_backplane_env(self, config_file: Path) -> None:
        with patch.dict("os.environ", {"REALTIME_BACKPLANE": "kafka"}, clear=True):
            with pytest.raises(ValidationError):
                Settings.from_config_json(config_file)


class TestSections:
    def test_dsn_from_parts(self) -> None:
        db = DatabaseSettings(
            DB_HOST="db", DB_PORT=5433, DB_NAME="rides", DB_USER="app", DB_PASSWORD="pw"
        )
        assert db.dsn == "postgresql://app:pw@db:5433/rides"

    def test_database_url_has_priority(self) -> None:
        db = DatabaseSettings(DATABASE_URL="postgresql://u:p@remote/x", DB_HOST="ignored")
        assert db.dsn == "postgresql://u:p@remote/x"

    def test_redis_url(self) -> None:
        assert RedisSettings().url == "redis://localhost:6379/0"
        assert RedisSettings(REDIS_PASSWORD="pw", REDIS_DB=2).url == "redis://:pw@localhost:6379/2"

    def test_backplane_values(self) -> None:
        assert RealtimeSettings(REALTIME_BACKPLANE="redis").REALTIME_BACKPLANE == "redis"
        with pytest.raises(ValidationError):
            RealtimeSettings(REALTIME_BACKPLANE="rabbitmq")
