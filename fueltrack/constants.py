# Fixed lookup tables and canned messages for the FuelTrack backend

from types import MappingProxyType

ADDRESS_NOT_AVAILABLE = "Address not available"
UNKNOWN_BRAND = "Unknown"
DEFAULT_STATION_NAME = "Fuel Station"


class Providers:
    GOOGLE = "google"
    OSM = "osm"


class FuelTypes:
    PETROL = "Petrol"
    DIESEL = "Diesel"
    CNG = "CNG"
    LPG = "LPG"
    ELECTRIC = "Electric"

    # OSM tag -> display name, in output order
    TAGS = (
        ("fuel:petrol", PETROL),
        ("fuel:diesel", DIESEL),
        ("fuel:cng", CNG),
        ("fuel:lpg", LPG),
        ("fuel:electric", ELECTRIC),
    )
    # Assumed when a station carries no fuel:* flags
    DEFAULT = frozenset({PETROL, DIESEL})

    # Values accepted on persisted fuel entries and vehicles
    ENTRY_VALUES = ("petrol", "diesel", "cng", "electric")


# Name suffix appended to cleaned business names, per brand
BRAND_SUFFIXES = MappingProxyType({
    "Indian Oil": "Petrol Pump",
    "IOCL": "Petrol Pump",
    "Hindustan Petroleum": "Petrol Pump",
    "HPCL": "Petrol Pump",
    "HP": "Petrol Pump",
    "Bharat Petroleum": "Petrol Pump",
    "BPCL": "Petrol Pump",
    "Reliance": "Petrol Pump",
    "Shell": "Service Station",
    "Essar": "Service Station",
    "Nayara": "Energy Station",
})
DEFAULT_BRAND_SUFFIX = "Service Station"

# Canonical chain name used when nothing but the brand is known
BRAND_NAMES = MappingProxyType({
    "Indian Oil": "Indian Oil Petrol Pump",
    "IOCL": "Indian Oil Petrol Pump",
    "Hindustan Petroleum": "HP Petrol Pump",
    "HPCL": "HP Petrol Pump",
    "HP": "HP Petrol Pump",
    "Bharat Petroleum": "BPCL Petrol Pump",
    "BPCL": "BPCL Petrol Pump",
    "Reliance": "Reliance Petrol Pump",
    "Shell": "Shell Service Station",
    "Essar": "Essar Service Station",
    "Nayara": "Nayara Energy Station",
})

# Chains recognised inside Nominatim display names, checked in order
KNOWN_CHAINS = (
    "Shell", "BP", "Exxon", "Chevron", "Total", "Indian Oil",
    "HP", "Reliance", "BPCL", "HPCL",
)


class Messages:
    LOCATION_REQUEST = "Please share your location so I can find nearby gas stations."
    LOGIN_REQUIRED = "Please log in so I can look up your fuel history."
    NO_STATIONS = "I couldn't find any fuel stations within {radius_km:.1f} km of you."
    STATIONS_HEADER = "Found {count} fuel stations near you:"
    MONTHLY_SPEND = (
        "You have spent {currency}{total_cost:.2f} on {total_liters:.1f} liters "
        "of fuel this month across {count} {fill_ups}."
    )
    NO_ENTRIES_THIS_MONTH = "You haven't logged any fill-ups this month yet."
    AVERAGE_PRICE = (
        "Your average fuel price over the last {count} {fill_ups} is "
        "{currency}{average:.2f} per liter."
    )
    NO_ENTRIES = "You haven't logged any fill-ups yet. Add one to get started!"
    LAST_FILL_UP = (
        "Your last fill-up was on {date}: {liters:.1f} liters at "
        "{currency}{price:.2f}/L ({currency}{total_cost:.2f} total){station}."
    )
    HELP = (
        "I can help you with:\n"
        "• Finding nearby gas stations (\"find petrol stations near me\")\n"
        "• Your spending this month (\"how much have I spent this month?\")\n"
        "• Your average fuel price (\"average price\")\n"
        "• Your last fill-up (\"last fill-up\")"
    )
    SUGGESTIONS = (
        "I can find nearby gas stations (say 'find gas stations near me' and share your location), or provide fuel stats.",
        "Try asking 'how much have I spent this month?' to see your fuel expenses.",
        "Curious about prices? Ask me for your 'average price'.",
        "Ask me about your 'last fill-up' to see your most recent entry.",
        "Type 'help' to see everything I can do.",
    )


class ErrorMessages:
    DATA_UNAVAILABLE = "Sorry, I couldn't fetch your fuel data right now. Please try again later."
    SEARCH_UNAVAILABLE = "Sorry, I couldn't search for stations right now. Please try again later."
    MISSING_COORDINATES = "Latitude and longitude are required"
    INVALID_COORDINATES = "Latitude and longitude must be valid numbers"
    INVALID_RADIUS = "Radius must be a positive integer"
    NO_TOKEN = "No token provided, authorization denied"
    INVALID_TOKEN = "Token is not valid"
    EXPIRED_TOKEN = "Token has expired"
    INVALID_CREDENTIALS = "Invalid email or password"
    EMAIL_TAKEN = "An account with this email already exists"
