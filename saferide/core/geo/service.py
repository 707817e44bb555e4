# saferide/core/geo/service.py
"""
Geo-сервис: геокодирование адреса назначения через Mapbox
и расстояние между точками по формуле гаверсинусов.
"""

from __future__ import annotations

import math
from urllib.parse import quote

import httpx

from saferide.common.constants import TypeMsg
from saferide.common.errors import DropoffNotFound, InvalidInput, UpstreamUnavailable
from saferide.common.logger import log_error, log_info
from saferide.shared.models.ride import Coordinate


EARTH_RADIUS_KM = 6371.0


class MapboxGeocoder:
    """
    Клиент Mapbox Geocoding API (mapbox.places).

    Любая сетевая ошибка, таймаут, ответ не 2xx или неожиданный формат
    превращаются в UpstreamUnavailable.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        if access_token is None or base_url is None or timeout is None:
            from saferide.config import settings
            access_token = access_token if access_token is not None else settings.geocoder.MAPBOX_TOKEN
            base_url = base_url or settings.geocoder.GEOCODING_URL
            timeout = timeout if timeout is not None else settings.geocoder.GEOCODER_TIMEOUT

        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def lookup(self, text: str, limit: int = 1) -> list[Coordinate]:
        """
        Прямое геокодирование: текст -> список совпадений, лучшее первым.

        Args:
            text: Адрес или название места
            limit: Максимум совпадений
        """
        if not self._access_token:
            await log_error("Mapbox token не настроен")
            raise UpstreamUnavailable("Geocoder is not configured")

        url = f"{self._base_url}/{quote(text, safe='')}.json"
        try:
            response = await self._client.get(
                url,
                params={"access_token": self._access_token, "limit": limit},
            )
        except httpx.HTTPError as e:
            await log_error(f"Геокодер недоступен: {e!r}")
            raise UpstreamUnavailable("Geocoder request failed") from e

        if response.status_code >= 400:
            await log_error(f"Геокодер ответил {response.status_code} для: {text}")
            raise UpstreamUnavailable(f"Geocoder responded with {response.status_code}")

        try:
            features = response.json()["features"]
            # center в Mapbox: [долгота, широта]
            return [
                Coordinate(lat=float(f["center"][1]), lng=float(f["center"][0]))
                for f in features
            ]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            await log_error(f"Неожиданный ответ геокодера: {e!r}")
            raise UpstreamUnavailable("Geocoder returned a malformed payload") from e


class GeoService:
    """Разрешение адресов и расчёт расстояний."""

    def __init__(self, geocoder: MapboxGeocoder) -> None:
        self._geocoder = geocoder

    async def resolve(self, destination_name: str) -> Coordinate:
        """
        Адрес -> координаты лучшего совпадения.

        Raises:
            InvalidInput: пустой адрес
            DropoffNotFound: геокодер ничего не нашёл
            UpstreamUnavailable: геокодер недоступен
        """
        text = (destination_name or "").strip()
        if not text:
            raise InvalidInput("Dropoff must not be empty")

        matches = await self._geocoder.lookup(text, limit=1)
        if not matches:
            await log_info(
                f"Геокодирование не дало результатов для: {text}",
                type_msg=TypeMsg.WARNING,
            )
            raise DropoffNotFound("Dropoff not found")

        return matches[0]

    @staticmethod
    def distance(a: Coordinate, b: Coordinate) -> float:
        """Расстояние по дуге большого круга в км."""
        lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
        dlat = lat2 - lat1
        dlng = math.radians(b.lng - a.lng)

        h = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
        )
        return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
