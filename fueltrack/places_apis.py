"""
HTTP clients for the places and geocoding providers used by station search:
Google Places (commercial, optional), the OSM Overpass API and Nominatim.

Every method either returns the decoded payload or raises ProviderError;
deciding what to do about a failure is left to the caller.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import API_CONFIG, GOOGLE_KEY_PLACEHOLDER, OSM_CONFIG
from .errors import ProviderError

logger = logging.getLogger(__name__)

GOOGLE = 'google'
OVERPASS = 'overpass'
NOMINATIM = 'nominatim'


def is_usable_key(api_key: Optional[str]) -> bool:
    return (isinstance(api_key, str) and len(api_key.strip()) > 0
            and api_key.strip() != GOOGLE_KEY_PLACEHOLDER)


def build_overpass_query(lat: float, lng: float, radius: int) -> str:
    timeout = OSM_CONFIG['OVERPASS_TIMEOUT_SECONDS']
    around = f"around:{radius},{lat},{lng}"
    return (
        f'[out:json][timeout:{timeout}];'
        f'(node["amenity"="fuel"]({around});way["amenity"="fuel"]({around}););'
        'out center tags;'
    )


class PlacesApiManager:

    def __init__(self, google_api_key: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 timeout_seconds: int = API_CONFIG['REQUEST_TIMEOUT']) -> None:
        self.google_api_key = google_api_key if google_api_key is not None \
            else API_CONFIG['GOOGLE_PLACES_API_KEY']
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.headers = {
            'User-Agent': API_CONFIG['USER_AGENT'],
            'Accept': 'application/json',
        }

    def has_google_key(self) -> bool:
        return is_usable_key(self.google_api_key)

    def _get_json(self, provider: str, url: str, params: Dict[str, Any],
                  timeout: Optional[float] = None) -> Any:
        try:
            resp = self.session.get(url, params=params, headers=self.headers,
                                    timeout=timeout or self.timeout_seconds)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.Timeout as e:
            raise ProviderError(provider, f"timeout: {e}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'unknown'
            raise ProviderError(provider, f"HTTP {status}") from e
        except ValueError as e:
            raise ProviderError(provider, f"invalid JSON response: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ProviderError(provider, f"network error: {e}") from e

    def google_nearby(self, lat: float, lng: float, radius: int,
                      place_type: str = 'gas_station') -> List[Dict[str, Any]]:
        """Google Places nearby search. Returns the raw place records."""
        if not self.has_google_key():
            raise ProviderError(GOOGLE, 'Google Places API key not configured')

        params = {
            'location': f"{lat},{lng}",
            'radius': radius,
            'type': place_type,
            'key': self.google_api_key,
        }
        data = self._get_json(GOOGLE, API_CONFIG['GOOGLE_NEARBY_URL'], params)
        status = (data or {}).get('status')
        if status not in ('OK', 'ZERO_RESULTS'):
            raise ProviderError(GOOGLE, f"Google Places API error: {status}")
        return data.get('results') or []

    def overpass_fuel_stations(self, lat: float, lng: float, radius: int) -> List[Dict[str, Any]]:
        """amenity=fuel nodes and ways around a point, in Overpass order."""
        query = build_overpass_query(lat, lng, radius)
        timeout = OSM_CONFIG['OVERPASS_TIMEOUT_SECONDS']
        data = self._get_json(OVERPASS, OSM_CONFIG['OVERPASS_URL'], {'data': query}, timeout=timeout)
        if not isinstance(data, dict):
            raise ProviderError(OVERPASS, 'unexpected response format')
        return data.get('elements') or []

    def nominatim_fuel_search(self, bbox: Tuple[float, float, float, float],
                              limit: int = OSM_CONFIG['NOMINATIM_LIMIT']) -> List[Dict[str, Any]]:
        """Structured Nominatim search for fuel amenities inside a viewbox."""
        left, top, right, bottom = bbox
        params = {
            'format': 'json',
            'amenity': 'fuel',
            'bounded': 1,
            'viewbox': f"{left},{top},{right},{bottom}",
            'limit': limit,
            'addressdetails': 1,
        }
        data = self._get_json(NOMINATIM, OSM_CONFIG['NOMINATIM_SEARCH_URL'], params)
        if not isinstance(data, list):
            raise ProviderError(NOMINATIM, 'unexpected response format')
        return data

    def reverse_geocode(self, lat: float, lon: float) -> Dict[str, Any]:
        """Nominatim reverse lookup with address, extra tags and name details."""
        params = {
            'format': 'json',
            'lat': lat,
            'lon': lon,
            'zoom': 18,
            'addressdetails': 1,
            'extratags': 1,
            'namedetails': 1,
        }
        data = self._get_json(NOMINATIM, OSM_CONFIG['NOMINATIM_REVERSE_URL'], params)
        if not isinstance(data, dict) or 'error' in data:
            raise ProviderError(NOMINATIM, 'no reverse geocoding result')
        return data
