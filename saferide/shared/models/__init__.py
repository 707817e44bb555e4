# saferide/shared/models/__init__.py
"""
Pydantic-модели, общие для core и API.
"""

from saferide.shared.models.common import ErrorResponse, HealthStatus
from saferide.shared.models.driver import LocationUpdateOut, NearbyDriver
from saferide.shared.models.payment import Earnings, Payment
from saferide.shared.models.ride import (
    AcceptRideIn,
    AcceptRideOut,
    Coordinate,
    FareQuote,
    Money,
    Ride,
    RideDraft,
    RideRequestIn,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthStatus",
    # Ride
    "AcceptRideIn",
    "AcceptRideOut",
    "Coordinate",
    "FareQuote",
    "Money",
    "Ride",
    "RideDraft",
    "RideRequestIn",
    # Driver
    "LocationUpdateOut",
    "NearbyDriver",
    # Payment
    "Earnings",
    "Payment",
]
