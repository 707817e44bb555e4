# saferide/core/pricing/__init__.py
"""
Тарифы и расчёт стоимости.
"""

from saferide.core.pricing.service import (
    FareCalculator,
    PricingModel,
    booking_pricing,
    quote_pricing,
)

__all__ = ["FareCalculator", "PricingModel", "booking_pricing", "quote_pricing"]
