# saferide/core/auth/service.py
"""
Проверка bearer-токенов.
Токены выдаёт внешний провайдер идентичности; здесь только проверка
подписи и извлечение {id, role}.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from saferide.common.constants import ParticipantRole, TypeMsg
from saferide.common.errors import Unauthorized
from saferide.common.logger import log_info


@dataclass(frozen=True)
class Principal:
    """Аутентифицированный пользователь запроса."""
    user_id: int
    role: ParticipantRole

    @property
    def is_driver(self) -> bool:
        return self.role is ParticipantRole.DRIVER


class AuthGate:
    """Проверяет HS256 токены с полезной нагрузкой {id, role}."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_hours: int = 168) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(hours=ttl_hours)

    @classmethod
    def from_settings(cls) -> "AuthGate":
        from saferide.config import settings

        return cls(
            secret=settings.auth.JWT_SECRET,
            algorithm=settings.auth.JWT_ALGORITHM,
            ttl_hours=settings.auth.TOKEN_TTL_HOURS,
        )

    async def verify(self, token: str | None) -> Principal:
        """
        Токен -> Principal.

        Raises:
            Unauthorized: токена нет, подпись неверна, срок истёк или payload некорректен
        """
        if not token:
            raise Unauthorized("No token provided")
        if not self._secret:
            await log_info("JWT_SECRET не задан, все токены отклоняются", type_msg=TypeMsg.ERROR)
            raise Unauthorized("Invalid token")

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            await log_info(f"Токен отклонён: {e}", type_msg=TypeMsg.DEBUG)
            raise Unauthorized("Invalid token") from e

        try:
            return Principal(
                user_id=int(payload["id"]),
                role=ParticipantRole(payload["role"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise Unauthorized("Invalid token payload") from e

    def issue_token(self, user_id: int, role: ParticipantRole) -> str:
        """Подписывает токен. Используется dev-утилитой и тестами."""
        if not self._secret:
            raise ValueError("JWT_SECRET is not configured")
        expire = datetime.now(timezone.utc) + self._ttl
        claims = {"id": user_id, "role": ParticipantRole(role).value, "exp": expire}
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)
