# saferide/core/pricing/service.py
"""
Расчёт стоимости поездки.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from saferide.common.errors import InvalidInput


CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PricingModel:
    """
    Тариф: (base + per_km * км) * currency_multiplier.

    currency_multiplier переводит базовые единицы в валюту currency.
    """
    base: Decimal = Decimal("5")
    per_km: Decimal = Decimal("2")
    currency_multiplier: Decimal = Decimal("1")
    currency: str = "GHS"

    @classmethod
    def of(
        cls,
        base: float,
        per_km: float,
        currency_multiplier: float = 1.0,
        currency: str = "GHS",
    ) -> "PricingModel":
        """Тариф из чисел конфига (через str, чтобы 2.1 оставалось 2.1)."""
        return cls(
            base=Decimal(str(base)),
            per_km=Decimal(str(per_km)),
            currency_multiplier=Decimal(str(currency_multiplier)),
            currency=currency,
        )


class FareCalculator:
    """Чистая функция расчёта без ввода-вывода."""

    @staticmethod
    def estimate(distance_km: float, pricing: PricingModel) -> Decimal:
        """
        Стоимость для дистанции, округлённая до копеек (half-up).

        Raises:
            InvalidInput: отрицательная, NaN или бесконечная дистанция
        """
        if distance_km is None or math.isnan(distance_km) or math.isinf(distance_km):
            raise InvalidInput("Distance must be a finite number")
        if distance_km < 0:
            raise InvalidInput("Distance must not be negative")

        raw = (pricing.base + pricing.per_km * Decimal(distance_km)) * pricing.currency_multiplier
        return raw.quantize(CENTS, rounding=ROUND_HALF_UP)


def quote_pricing() -> PricingModel:
    """Тариф для предварительной оценки (/fare)."""
    from saferide.config import settings

    fares = settings.fares
    return PricingModel.of(fares.BASE_FARE, fares.FARE_PER_KM, fares.QUOTE_CURRENCY_MULTIPLIER, fares.CURRENCY)


def booking_pricing() -> PricingModel:
    """Тариф для бронирования (/request)."""
    from saferide.config import settings

    fares = settings.fares
    return PricingModel.of(fares.BASE_FARE, fares.FARE_PER_KM, fares.BOOKING_CURRENCY_MULTIPLIER, fares.CURRENCY)
