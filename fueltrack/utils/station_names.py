"""
Heuristics that turn raw OpenStreetMap / Nominatim data into display-ready
station names, brands, fuel types and addresses.

The output is cosmetic: names are meant to resemble what a user sees on a map
app, not to match any business registry.
"""

import re
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from ..constants import (
    ADDRESS_NOT_AVAILABLE,
    BRAND_NAMES,
    BRAND_SUFFIXES,
    DEFAULT_BRAND_SUFFIX,
    DEFAULT_STATION_NAME,
    KNOWN_CHAINS,
    UNKNOWN_BRAND,
    FuelTypes,
)

COMPLETE_NAME_RE = re.compile(
    r'^[A-Z][a-z]+.*(?:Petrol|Service|Station|Bunk|Petroleum|Oil|Energy|Petroleums)', re.I)
BUSINESS_ENDING_RE = re.compile(
    r'(?:Petroleum|Petroleums|Service|Station|Bunk|Oil|Energy)$', re.I)
BARE_ACRONYM_RE = re.compile(r'^(?:HP|BP|IOCL|HPCL|BPCL)$', re.I)
HONORIFIC_RE = re.compile(r'^(?:Sri|Shri|Mr\.?|Mrs\.?)\s+', re.I)
GENERIC_SUFFIX_RE = re.compile(
    r'\s+(?:Petrol\s+Pump|Service\s+Station|Fuel\s+Station|Petrol\s+Bunk)$', re.I)
COORDINATE_PAIR_RE = re.compile(r'\d+\.\d+,\s*\d+\.\d+')

FUEL_NAME_KEYWORDS = ("petrol", "fuel", "station", "service", "petroleum")

STRUCTURED_ADDRESS_KEYS = (
    "addr:housenumber",
    "addr:street",
    "addr:suburb",
    "addr:city",
    "addr:district",
    "addr:state",
    "addr:postcode",
)


def get_brand(tags: Optional[Mapping[str, Any]]) -> str:
    tags = tags or {}
    return tags.get("brand") or tags.get("operator") or UNKNOWN_BRAND


def brand_suffix(brand: str) -> str:
    return BRAND_SUFFIXES.get(brand, DEFAULT_BRAND_SUFFIX)


def brand_name(brand: str) -> str:
    """Canonical chain name for a brand when nothing better is known."""
    if brand in BRAND_NAMES:
        return BRAND_NAMES[brand]
    if brand != UNKNOWN_BRAND:
        return f"{brand} {DEFAULT_BRAND_SUFFIX}"
    return DEFAULT_STATION_NAME


def clean_station_name(name: Optional[str], brand: str) -> Optional[str]:
    """Strip brand repeats, honorifics and generic suffixes, then title-case."""
    if not name:
        return None

    patterns = (
        re.compile(r'^' + re.escape(brand) + r'\s+', re.I),
        HONORIFIC_RE,
        GENERIC_SUFFIX_RE,
    )
    clean_name = name.strip()
    for pattern in patterns:
        clean_name = pattern.sub('', clean_name).strip()

    return ' '.join(word[:1].upper() + word[1:].lower() for word in clean_name.split(' '))


def normalize_station(tags: Optional[Mapping[str, Any]],
                      business_name: Optional[str] = None) -> Tuple[str, str]:
    """Return (name, brand) for a station.

    A business name resolved by reverse geocoding takes priority over the
    map tags; the brand tables are the last resort. The name is never empty.
    """
    tags = tags or {}
    brand = get_brand(tags)

    if business_name:
        if COMPLETE_NAME_RE.search(business_name):
            return business_name, brand

        clean_name = clean_station_name(business_name, brand)
        if clean_name and len(clean_name) > 2 and not BARE_ACRONYM_RE.match(clean_name):
            if BUSINESS_ENDING_RE.search(clean_name):
                return clean_name, brand
            return f"{clean_name} {brand_suffix(brand)}", brand

    name = (tags.get("name") or "").strip()
    if name and name != brand:
        lowered = name.lower()
        if any(keyword in lowered for keyword in FUEL_NAME_KEYWORDS):
            return name, brand
        return f"{name} {brand_suffix(brand)}", brand

    return brand_name(brand), brand


def has_fuel_flags(tags: Optional[Mapping[str, Any]]) -> bool:
    tags = tags or {}
    return any(tags.get(tag) == "yes" for tag, _ in FuelTypes.TAGS)


def extract_fuel_types(tags: Optional[Mapping[str, Any]]) -> FrozenSet[str]:
    """Fuel types flagged "yes" in the tags.

    Stations without any fuel:* flag are assumed to sell petrol and diesel;
    callers report that assumption through has_fuel_flags().
    """
    tags = tags or {}
    flagged = frozenset(label for tag, label in FuelTypes.TAGS if tags.get(tag) == "yes")
    return flagged or FuelTypes.DEFAULT


def format_address(tags: Optional[Mapping[str, Any]]) -> str:
    if not tags:
        return ADDRESS_NOT_AVAILABLE

    parts = [tags[key] for key in STRUCTURED_ADDRESS_KEYS if tags.get(key)]
    if len(parts) >= 2:
        return ", ".join(parts)

    # No structured address, try other location indicators
    location_parts = []
    if tags.get("addr:street"):
        location_parts.append(tags["addr:street"])
    if tags.get("addr:city"):
        location_parts.append(tags["addr:city"])
    if tags.get("place"):
        location_parts.append(tags["place"])
    if tags.get("highway"):
        location_parts.append(f"{tags['highway']} Highway")
    if tags.get("neighbourhood"):
        location_parts.append(tags["neighbourhood"])

    if location_parts:
        return ", ".join(location_parts)
    return ADDRESS_NOT_AVAILABLE


def format_reverse_address(payload: Mapping[str, Any]) -> str:
    """Address string from a Nominatim reverse-geocode response."""
    addr: Dict[str, Any] = payload.get("address") or {}
    parts = []
    if addr.get("house_number"):
        parts.append(addr["house_number"])
    if addr.get("road") or addr.get("street"):
        parts.append(addr.get("road") or addr.get("street"))
    if addr.get("neighbourhood"):
        parts.append(addr["neighbourhood"])
    if addr.get("suburb"):
        parts.append(addr["suburb"])
    if addr.get("city") or addr.get("town") or addr.get("village"):
        parts.append(addr.get("city") or addr.get("town") or addr.get("village"))
    if addr.get("county"):
        parts.append(addr["county"])
    if addr.get("state") or addr.get("state_district"):
        parts.append(addr.get("state") or addr.get("state_district"))
    if addr.get("postcode"):
        parts.append(addr["postcode"])

    if len(parts) >= 2:
        return ", ".join(parts)

    display_name = payload.get("display_name") or ""
    clean_address = COORDINATE_PAIR_RE.sub('', display_name).strip()
    clean_address = re.sub(r'^,\s*|,\s*$', '', clean_address).strip()
    return clean_address or ADDRESS_NOT_AVAILABLE


def business_name_from_reverse(payload: Mapping[str, Any]) -> Optional[str]:
    namedetails = payload.get("namedetails") or {}
    extratags = payload.get("extratags") or {}
    return (
        namedetails.get("name")
        or namedetails.get("name:en")
        or namedetails.get("name:local")
        or extratags.get("name")
        or extratags.get("brand")
        or extratags.get("operator")
        or payload.get("name")
        or None
    )


def extract_brand(display_name: Optional[str]) -> str:
    """First known chain whose name occurs in a free-text place name."""
    upper_name = (display_name or "").upper()
    for chain in KNOWN_CHAINS:
        if chain.upper() in upper_name:
            return chain
    return UNKNOWN_BRAND
