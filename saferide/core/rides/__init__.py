# saferide/core/rides/__init__.py
"""
Поездки: хранилище, переходы статусов, жизненный цикл.
"""

from saferide.core.rides.repository import RideRepository, RideStore
from saferide.core.rides.service import RideLifecycle
from saferide.core.rides.state_machine import RideStateMachine

__all__ = ["RideLifecycle", "RideRepository", "RideStateMachine", "RideStore"]
