from .geo_utils import bounding_box, distance
from .station_names import extract_fuel_types, format_address, normalize_station
from .throttle import ThrottledQueue

__all__ = [
    "bounding_box",
    "distance",
    "extract_fuel_types",
    "format_address",
    "normalize_station",
    "ThrottledQueue",
]
