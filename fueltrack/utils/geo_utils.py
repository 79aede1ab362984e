from math import radians, sin, cos, sqrt, atan2
from typing import Tuple

from ..config import OSM_CONFIG

EARTH_RADIUS_KM = 6371


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> int:
    """Great-circle distance between two points in whole meters (haversine)."""
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = (sin(d_lat / 2) ** 2
         + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return int(round(EARTH_RADIUS_KM * c * 1000))


def bounding_box(lat: float, lon: float, radius_km: float) -> Tuple[float, float, float, float]:
    """Return (left, top, right, bottom) of a box reaching radius_km from the point.

    Uses the flat degrees-per-km approximation Nominatim viewboxes need,
    not a geodesic offset.
    """
    lat_km = OSM_CONFIG['LAT_KM_PER_DEGREE']
    lng_km = OSM_CONFIG['LNG_KM_PER_DEGREE_AT_EQUATOR'] * cos(radians(lat))
    return (
        lon - radius_km / lng_km,
        lat + radius_km / lat_km,
        lon + radius_km / lng_km,
        lat - radius_km / lat_km,
    )


def maps_url(lat: float, lon: float) -> str:
    return f"https://www.google.com/maps?q={lat},{lon}"


def directions_url(lat: float, lon: float) -> str:
    return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lon}"
