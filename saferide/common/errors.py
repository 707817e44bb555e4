# saferide/common/errors.py
"""
Таксономия ошибок Safe Ride.

Каждая ошибка несёт машинный код (error_code) и HTTP-статус,
в который её переводит обработчик исключений API.
"""

from __future__ import annotations

from typing import Any


class SafeRideError(Exception):
    """Базовая ошибка приложения."""

    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.details = details


class InvalidInput(SafeRideError):
    """Некорректные входные данные (координаты, адрес, дистанция)."""
    error_code = "invalid_input"
    status_code = 400


class Unauthorized(SafeRideError):
    """Токен отсутствует, просрочен или не прошёл проверку подписи."""
    error_code = "unauthorized"
    status_code = 401


class Forbidden(SafeRideError):
    """Роль пользователя не позволяет выполнить действие."""
    error_code = "forbidden"
    status_code = 403


class NotFound(SafeRideError):
    error_code = "not_found"
    status_code = 404


class RideNotFound(NotFound):
    """Поездка с таким id не существует."""


class DropoffNotFound(NotFound):
    """Геокодер не нашёл ни одного совпадения для адреса назначения."""
    error_code = "dropoff_not_found"
    status_code = 422


class Conflict(SafeRideError):
    """Состояние поездки не допускает операцию (например, уже принята)."""
    error_code = "conflict"
    status_code = 409


class UpstreamUnavailable(SafeRideError):
    """Внешний сервис (геокодер) недоступен или ответил ошибкой."""
    error_code = "upstream_unavailable"
    status_code = 502


class StorageFailure(SafeRideError):
    """Ошибка хранилища. Наружу уходит только общий текст."""
    error_code = "storage_failure"
    status_code = 500
