# saferide/services/api/dependencies.py
"""
Зависимости FastAPI.
Все сервисы создаются в lifespan и лежат в app.state.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from saferide.common.constants import ParticipantRole
from saferide.common.errors import Forbidden
from saferide.core.auth.service import AuthGate, Principal
from saferide.core.drivers.service import DriverService
from saferide.core.payments.repository import PaymentRepository
from saferide.core.rides.service import RideLifecycle


bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth


def get_ride_lifecycle(request: Request) -> RideLifecycle:
    return request.app.state.rides


def get_driver_service(request: Request) -> DriverService:
    return request.app.state.drivers


def get_payment_repository(request: Request) -> PaymentRepository:
    return request.app.state.payments


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthGate = Depends(get_auth_gate),
) -> Principal:
    """Пользователь из заголовка Authorization: Bearer <token>."""
    token = credentials.credentials if credentials else None
    return await auth.verify(token)


def require_role(role: ParticipantRole) -> Callable[..., Awaitable[Principal]]:
    """Зависимость, пропускающая только пользователей с указанной ролью."""

    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role is not role:
            raise Forbidden(f"Only {role.value}s can perform this action")
        return principal

    return dependency
