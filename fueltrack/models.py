from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .constants import FuelTypes


@dataclass(frozen=True)
class LocationQuery:
    latitude: float
    longitude: float
    radius_meters: int

    def clamped_radius(self, max_radius: int) -> int:
        return min(self.radius_meters, max_radius)


@dataclass(frozen=True)
class NormalizedStation:
    id: str
    name: str
    brand: str
    address: str
    latitude: float
    longitude: float
    distance_meters: int
    provider: str
    operator: str = "Unknown"
    opening_hours: str = "Unknown"
    fuel_types: FrozenSet[str] = FuelTypes.DEFAULT
    fuel_types_assumed: bool = True
    maps_url: str = ""
    directions_url: str = ""
    rating: Optional[float] = None
    is_open: Optional[bool] = None

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape served by /api/stations/nearby and the chatbot."""
        ordered_fuel_types = [label for _, label in FuelTypes.TAGS if label in self.fuel_types]
        lat, lng = self.coordinates
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "address": self.address,
            "lat": lat,
            "lng": lng,
            "distance": self.distance_meters,
            "operator": self.operator,
            "openingHours": self.opening_hours,
            "fuelTypes": ordered_fuel_types,
            "fuelTypesAssumed": self.fuel_types_assumed,
            "googleMapsUrl": self.maps_url,
            "googleMapsDirectionsUrl": self.directions_url,
            "coordinates": f"{lat:.6f}, {lng:.6f}",
            "provider": self.provider,
            "rating": self.rating,
            "isOpen": self.is_open,
        }


@dataclass(frozen=True)
class ProviderFailure:
    provider: str
    reason: str


@dataclass(frozen=True)
class ProviderResult:
    """Either a station list or the reason a provider could not produce one."""

    provider: str
    stations: List[NormalizedStation] = field(default_factory=list)
    failure: Optional[ProviderFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, provider: str, stations: List[NormalizedStation]) -> "ProviderResult":
        return cls(provider=provider, stations=list(stations))

    @classmethod
    def failed(cls, provider: str, reason: str) -> "ProviderResult":
        return cls(provider=provider, failure=ProviderFailure(provider, reason))


@dataclass(frozen=True)
class StationSearchResult:
    provider: str
    stations: List[NormalizedStation]
    search_radius: int
    query_location: Tuple[float, float]

    @property
    def count(self) -> int:
        return len(self.stations)

    def to_dict(self) -> Dict[str, Any]:
        lat, lng = self.query_location
        return {
            "success": True,
            "provider": self.provider,
            "count": self.count,
            "stations": [s.to_dict() for s in self.stations],
            "searchRadius": self.search_radius,
            "location": {"lat": lat, "lng": lng},
        }
