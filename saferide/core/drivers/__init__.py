# saferide/core/drivers/__init__.py
from saferide.core.drivers.repository import DriverRepository
from saferide.core.drivers.service import DriverService

__all__ = ["DriverRepository", "DriverService"]
