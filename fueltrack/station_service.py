"""
Station Search Service for FuelTrack
Finds fuel stations near a point using Google Places when configured, and
the OpenStreetMap chain (Overpass, reverse-geocode enrichment, Nominatim
bounding-box fallback) otherwise.

Provider failures never escape this module: they become a fallback attempt
or, at the end of the chain, an empty result.
"""

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .config import API_CONFIG, OSM_CONFIG, SEARCH_CONFIG
from .constants import ADDRESS_NOT_AVAILABLE, DEFAULT_STATION_NAME, Providers
from .errors import ProviderError
from .models import LocationQuery, NormalizedStation, ProviderResult, StationSearchResult
from .places_apis import PlacesApiManager
from .utils.geo_utils import bounding_box, directions_url, distance, maps_url
from .utils.station_names import (
    business_name_from_reverse,
    extract_brand,
    extract_fuel_types,
    format_address,
    format_reverse_address,
    has_fuel_flags,
    normalize_station,
)
from .utils.throttle import ThrottledQueue

logger = logging.getLogger(__name__)


def rank_stations(stations: Iterable[NormalizedStation], requested_radius: int,
                  limit: Optional[int] = None) -> List[NormalizedStation]:
    """Drop stations beyond the radius tolerance and sort nearest first."""
    max_distance = requested_radius + SEARCH_CONFIG['RADIUS_BUFFER_M']
    kept = []
    for station in stations:
        if station.distance_meters > max_distance:
            logger.info(f"Skipping {station.name}: too far ({station.distance_meters}m > {max_distance}m)")
            continue
        kept.append(station)
    kept.sort(key=lambda s: s.distance_meters)
    return kept[:limit] if limit is not None else kept


def with_fallback(*attempts: Callable[[], ProviderResult]) -> ProviderResult:
    """Run attempts in order and return the first successful result.

    Each attempt runs at most once. When every attempt fails, the last
    failure is returned.
    """
    result = None
    for attempt in attempts:
        result = attempt()
        if result.ok:
            return result
        logger.warning(f"{result.failure.provider} search failed: {result.failure.reason}")
    return result


# Raised when a provider answers with valid JSON in an unexpected shape
SHAPE_ERRORS = (AttributeError, TypeError, KeyError, ValueError)


def _malformed(provider: str, error: Exception) -> ProviderResult:
    logger.warning(f"{provider} returned an unexpected response shape: {error!r}")
    return ProviderResult.failed(provider, f"unexpected response shape: {error}")


def _element_position(element: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    center = element.get('center') or element
    try:
        return float(center['lat']), float(center['lon'])
    except (KeyError, TypeError, ValueError):
        return None


@dataclass
class _OverpassCandidate:
    element_id: str
    latitude: float
    longitude: float
    tags: Dict[str, Any] = field(default_factory=dict)
    address: str = ADDRESS_NOT_AVAILABLE
    business_name: Optional[str] = None


class GooglePlacesProvider:
    name = Providers.GOOGLE

    def __init__(self, api: PlacesApiManager) -> None:
        self.api = api

    def search(self, query: LocationQuery) -> ProviderResult:
        radius = query.clamped_radius(SEARCH_CONFIG['GOOGLE_MAX_RADIUS_M'])
        try:
            places = self.api.google_nearby(query.latitude, query.longitude, radius)
        except ProviderError as e:
            return ProviderResult.failed(self.name, e.message)

        try:
            stations = [s for s in (self._to_station(p, query) for p in places) if s is not None]
        except SHAPE_ERRORS as e:
            return _malformed(self.name, e)
        return ProviderResult.success(
            self.name, rank_stations(stations, query.radius_meters, SEARCH_CONFIG['MAX_RESULTS']))

    def _to_station(self, place: Dict[str, Any], query: LocationQuery) -> Optional[NormalizedStation]:
        location = (place.get('geometry') or {}).get('location') or {}
        try:
            lat = float(location['lat'])
            lng = float(location['lng'])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping Google place without coordinates: {place.get('place_id')}")
            return None

        is_open = (place.get('opening_hours') or {}).get('open_now')
        if is_open is True:
            opening_hours = 'Open now'
        elif is_open is False:
            opening_hours = 'Closed now'
        else:
            opening_hours = 'Unknown'

        name = place.get('name') or DEFAULT_STATION_NAME
        return NormalizedStation(
            id=str(place.get('place_id') or f"{lat},{lng}"),
            name=name,
            brand=name,
            address=place.get('vicinity') or place.get('formatted_address') or ADDRESS_NOT_AVAILABLE,
            latitude=lat,
            longitude=lng,
            distance_meters=distance(query.latitude, query.longitude, lat, lng),
            provider=self.name,
            opening_hours=opening_hours,
            maps_url=maps_url(lat, lng),
            directions_url=directions_url(lat, lng),
            rating=place.get('rating'),
            is_open=is_open,
        )


class OverpassProvider:
    """Overpass query plus throttled reverse-geocode enrichment."""

    name = Providers.OSM

    def __init__(self, api: PlacesApiManager,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.api = api
        self.clock = clock
        self.sleep = sleep

    def search(self, query: LocationQuery) -> ProviderResult:
        radius = query.clamped_radius(OSM_CONFIG['MAX_RADIUS_M'])
        logger.info(f"Searching for fuel stations within {radius}m of {query.latitude}, {query.longitude}")
        try:
            elements = self.api.overpass_fuel_stations(query.latitude, query.longitude, radius)
        except ProviderError as e:
            return ProviderResult.failed(self.name, e.message)

        try:
            candidates = self._candidates(elements)
        except SHAPE_ERRORS as e:
            return _malformed(self.name, e)

        self._enrich(candidates)
        try:
            stations = [self._to_station(c, query) for c in candidates]
        except SHAPE_ERRORS as e:
            return _malformed(self.name, e)
        return ProviderResult.success(
            self.name, rank_stations(stations, query.radius_meters, SEARCH_CONFIG['MAX_RESULTS']))

    def _candidates(self, elements: List[Dict[str, Any]]) -> List[_OverpassCandidate]:
        candidates = []
        for element in elements[:OSM_CONFIG['MAX_CANDIDATES']]:
            if not isinstance(element, dict):
                logger.warning(f"Skipping malformed OSM element: {element!r}")
                continue
            position = _element_position(element)
            if position is None:
                logger.warning(f"Skipping OSM element {element.get('id')} without coordinates")
                continue
            tags = element.get('tags')
            if not isinstance(tags, dict):
                tags = {}
            candidates.append(_OverpassCandidate(
                element_id=str(element.get('id')),
                latitude=position[0],
                longitude=position[1],
                tags=tags,
                address=format_address(tags),
            ))
        return candidates

    def _enrich(self, candidates: List[_OverpassCandidate]) -> List[_OverpassCandidate]:
        """Reverse-geocode candidates lacking an address, one lookup at a time."""
        queue = ThrottledQueue(OSM_CONFIG['ENRICHMENT_INTERVAL_SECONDS'],
                               clock=self.clock, sleep=self.sleep)
        for candidate in candidates:
            if candidate.address != ADDRESS_NOT_AVAILABLE:
                continue
            if len(queue) < OSM_CONFIG['MAX_ENRICHMENT_CALLS']:
                queue.submit(partial(self._reverse_geocode, candidate))
            else:
                candidate.address = f"Coordinates: {candidate.latitude:.4f}, {candidate.longitude:.4f}"
        queue.drain()
        return candidates

    def _reverse_geocode(self, candidate: _OverpassCandidate) -> None:
        near = f"Near {candidate.latitude:.4f}, {candidate.longitude:.4f}"
        try:
            payload = self.api.reverse_geocode(candidate.latitude, candidate.longitude)
            address = format_reverse_address(payload)
            business_name = business_name_from_reverse(payload)
        except (ProviderError,) + SHAPE_ERRORS as e:
            logger.warning(f"Failed to get address for station {candidate.element_id}: {e}")
            candidate.address = near
            return

        candidate.address = address if address != ADDRESS_NOT_AVAILABLE else near
        candidate.business_name = business_name

    def _to_station(self, candidate: _OverpassCandidate, query: LocationQuery) -> NormalizedStation:
        tags = candidate.tags
        name, brand = normalize_station(tags, candidate.business_name)
        lat, lon = candidate.latitude, candidate.longitude
        return NormalizedStation(
            id=candidate.element_id,
            name=name,
            brand=brand,
            address=candidate.address,
            latitude=lat,
            longitude=lon,
            distance_meters=distance(query.latitude, query.longitude, lat, lon),
            provider=self.name,
            operator=tags.get('operator') or brand or 'Unknown',
            opening_hours=tags.get('opening_hours') or 'Unknown',
            fuel_types=extract_fuel_types(tags),
            fuel_types_assumed=not has_fuel_flags(tags),
            maps_url=maps_url(lat, lon),
            directions_url=directions_url(lat, lon),
        )


class NominatimBboxProvider:
    """Bounding-box Nominatim search, used when Overpass is unavailable."""

    name = Providers.OSM

    def __init__(self, api: PlacesApiManager) -> None:
        self.api = api

    def search(self, query: LocationQuery) -> ProviderResult:
        radius_km = query.clamped_radius(OSM_CONFIG['MAX_RADIUS_M']) / 1000
        bbox = bounding_box(query.latitude, query.longitude, radius_km)
        left, top, right, bottom = bbox
        logger.info(f"Nominatim search bbox: {left:.4f}, {top:.4f}, {right:.4f}, {bottom:.4f}")
        try:
            places = self.api.nominatim_fuel_search(bbox)
        except ProviderError as e:
            return ProviderResult.failed(self.name, e.message)

        try:
            stations = [s for s in (self._to_station(p, query) for p in places) if s is not None]
        except SHAPE_ERRORS as e:
            return _malformed(self.name, e)
        return ProviderResult.success(self.name, rank_stations(stations, query.radius_meters))

    def _to_station(self, place: Dict[str, Any], query: LocationQuery) -> Optional[NormalizedStation]:
        try:
            lat = float(place['lat'])
            lon = float(place['lon'])
        except (KeyError, TypeError, ValueError):
            return None
        display_name = place.get('display_name') or ''
        return NormalizedStation(
            id=str(place.get('place_id')),
            name=display_name.split(',')[0].strip() or DEFAULT_STATION_NAME,
            brand=extract_brand(display_name),
            address=display_name or ADDRESS_NOT_AVAILABLE,
            latitude=lat,
            longitude=lon,
            distance_meters=distance(query.latitude, query.longitude, lat, lon),
            provider=self.name,
            maps_url=maps_url(lat, lon),
            directions_url=directions_url(lat, lon),
        )


class StationSearchService:
    """Chooses a provider for each search and always returns a result."""

    def __init__(self, api: Optional[PlacesApiManager] = None,
                 provider_name: Optional[str] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.api = api or PlacesApiManager()
        self.provider_name = (provider_name or API_CONFIG['PLACES_PROVIDER'] or Providers.OSM).lower()
        self.google = GooglePlacesProvider(self.api)
        self.overpass = OverpassProvider(self.api, clock=clock, sleep=sleep)
        self.nominatim = NominatimBboxProvider(self.api)

    def uses_google(self) -> bool:
        return self.provider_name == Providers.GOOGLE and self.api.has_google_key()

    def _search_osm(self, query: LocationQuery) -> ProviderResult:
        result = with_fallback(partial(self.overpass.search, query),
                               partial(self.nominatim.search, query))
        if not result.ok:
            return ProviderResult.success(Providers.OSM, [])
        return result

    def search(self, query: LocationQuery) -> StationSearchResult:
        if self.uses_google():
            result = with_fallback(partial(self.google.search, query),
                                   partial(self._search_osm, query))
        else:
            result = self._search_osm(query)

        logger.info(f"Station search via {result.provider}: {len(result.stations)} stations "
                    f"within {query.radius_meters}m of {query.latitude}, {query.longitude}")
        return StationSearchResult(
            provider=result.provider,
            stations=result.stations,
            search_radius=query.radius_meters,
            query_location=(query.latitude, query.longitude),
        )

    def find_nearby(self, lat: float, lng: float, radius: Optional[int] = None) -> StationSearchResult:
        return self.search(LocationQuery(lat, lng, radius or SEARCH_CONFIG['DEFAULT_RADIUS_M']))
