# saferide/core/geo/__init__.py
"""
Геокодирование и расстояния.
"""

from saferide.core.geo.service import GeoService, MapboxGeocoder

__all__ = ["GeoService", "MapboxGeocoder"]
