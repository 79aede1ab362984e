"""
Rule-based chatbot for FuelTrack
Matches lower-cased messages against fixed keyword sets, in priority order,
and answers from station search or the user's fuel entries.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import CHATBOT_CONFIG, SEARCH_CONFIG
from .constants import ErrorMessages, Messages
from .fuel_data_service import FuelDataService, utcnow
from .models import LocationQuery, NormalizedStation
from .station_service import StationSearchService

logger = logging.getLogger(__name__)

NEARBY_KEYWORDS = ["near", "nearby", "around", "closest", "nearest"]
STATION_KEYWORDS = ["gas", "station", "petrol", "diesel", "pump", "fuel", "bunk"]
SPEND_KEYWORDS = ["spent", "spend", "expense", "monthly"]
AVERAGE_KEYWORDS = ["average", "avg"]
LAST_FILL_KEYWORDS = ["last fill", "last refuel", "last fuel", "previous fill", "most recent", "fill-up"]
HELP_KEYWORDS = ["help", "what can you do"]


def _contains_any(text: str, keywords: List[str]) -> bool:
    return any(kw in text for kw in keywords)


def is_nearby_query(text: str) -> bool:
    """Check if a lower-cased message asks for stations around the user."""
    if not _contains_any(text, STATION_KEYWORDS):
        return False
    return _contains_any(text, NEARBY_KEYWORDS) or "find" in text


def is_spend_query(text: str) -> bool:
    return _contains_any(text, SPEND_KEYWORDS)


def is_average_price_query(text: str) -> bool:
    return _contains_any(text, AVERAGE_KEYWORDS)


def is_last_fill_query(text: str) -> bool:
    return _contains_any(text, LAST_FILL_KEYWORDS)


def is_help_query(text: str) -> bool:
    return _contains_any(text, HELP_KEYWORDS)


def format_distance(meters: int) -> str:
    if meters < 1000:
        return f"{meters} m"
    return f"{meters / 1000:.1f} km"


def _fill_ups(count: int) -> str:
    return "fill-up" if count == 1 else "fill-ups"


@dataclass
class ChatRequest:
    text: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    user_id: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class ChatReply:
    reply: str
    intent: str = "default"
    stations: Optional[List[NormalizedStation]] = None
    provider: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "reply": self.reply,
            "intent": self.intent,
            "hasStations": bool(self.stations),
        }
        if self.stations is not None:
            payload["stations"] = [s.to_dict() for s in self.stations]
            payload["count"] = len(self.stations)
            payload["provider"] = self.provider
        return payload


@dataclass
class IntentRule:
    name: str
    matches: Callable[[str], bool]
    handler: Callable[[ChatRequest], ChatReply]
    apology: str = ErrorMessages.DATA_UNAVAILABLE
    needs_user: bool = False


@dataclass
class ChatbotRouter:
    """Single-turn intent router; respond() never raises."""

    station_service: StationSearchService
    fuel_data: FuelDataService
    now: Callable[[], datetime] = utcnow
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        self.rules: Tuple[IntentRule, ...] = (
            IntentRule("nearby_station", is_nearby_query, self._nearby_stations,
                       apology=ErrorMessages.SEARCH_UNAVAILABLE),
            IntentRule("monthly_spend", is_spend_query, self._monthly_spend, needs_user=True),
            IntentRule("average_price", is_average_price_query, self._average_price, needs_user=True),
            IntentRule("last_fill_up", is_last_fill_query, self._last_fill_up, needs_user=True),
            IntentRule("help", is_help_query, self._help),
        )

    def respond(self, request: ChatRequest) -> ChatReply:
        text = (request.text or "").lower()
        for rule in self.rules:
            if not rule.matches(text):
                continue
            if rule.needs_user and not request.user_id:
                return ChatReply(Messages.LOGIN_REQUIRED, intent=rule.name)
            try:
                return rule.handler(request)
            except Exception as e:
                logger.error(f"Chatbot intent '{rule.name}' failed: {e}")
                return ChatReply(rule.apology, intent=rule.name)
        return ChatReply(self.rng.choice(Messages.SUGGESTIONS))

    def _nearby_stations(self, request: ChatRequest) -> ChatReply:
        if not request.has_location:
            return ChatReply(Messages.LOCATION_REQUEST, intent="nearby_station")

        radius = SEARCH_CONFIG['CHATBOT_RADIUS_M']
        result = self.station_service.search(
            LocationQuery(float(request.latitude), float(request.longitude), radius))
        if not result.stations:
            reply = Messages.NO_STATIONS.format(radius_km=radius / 1000)
            return ChatReply(reply, intent="nearby_station", stations=[], provider=result.provider)

        lines = [Messages.STATIONS_HEADER.format(count=result.count), ""]
        for i, station in enumerate(result.stations[:CHATBOT_CONFIG['MAX_LISTED_STATIONS']], 1):
            lines.append(f"{i}. {station.name}")
            lines.append(f"   📍 {station.address}")
            lines.append(f"   📏 {format_distance(station.distance_meters)} away")
        return ChatReply("\n".join(lines), intent="nearby_station",
                         stations=result.stations, provider=result.provider)

    def _monthly_spend(self, request: ChatRequest) -> ChatReply:
        month_start = self.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        totals = self.fuel_data.spend_since(request.user_id, month_start)
        if not totals['count']:
            return ChatReply(Messages.NO_ENTRIES_THIS_MONTH, intent="monthly_spend")
        reply = Messages.MONTHLY_SPEND.format(
            currency=CHATBOT_CONFIG['CURRENCY_SYMBOL'],
            total_cost=totals['total_cost'],
            total_liters=totals['total_liters'],
            count=totals['count'],
            fill_ups=_fill_ups(totals['count']),
        )
        return ChatReply(reply, intent="monthly_spend")

    def _average_price(self, request: ChatRequest) -> ChatReply:
        stats = self.fuel_data.average_recent_price(
            request.user_id, limit=CHATBOT_CONFIG['AVERAGE_PRICE_WINDOW'])
        if stats is None:
            return ChatReply(Messages.NO_ENTRIES, intent="average_price")
        reply = Messages.AVERAGE_PRICE.format(
            currency=CHATBOT_CONFIG['CURRENCY_SYMBOL'],
            average=stats['average'],
            count=stats['count'],
            fill_ups=_fill_ups(stats['count']),
        )
        return ChatReply(reply, intent="average_price")

    def _last_fill_up(self, request: ChatRequest) -> ChatReply:
        entry = self.fuel_data.latest_entry(request.user_id)
        if entry is None:
            return ChatReply(Messages.NO_ENTRIES, intent="last_fill_up")
        station = f" at {entry['stationName']}" if entry.get('stationName') else ""
        reply = Messages.LAST_FILL_UP.format(
            date=entry['date'].strftime('%d %b %Y'),
            liters=entry['liters'],
            price=entry['pricePerLiter'],
            total_cost=entry['totalCost'],
            currency=CHATBOT_CONFIG['CURRENCY_SYMBOL'],
            station=station,
        )
        return ChatReply(reply, intent="last_fill_up")

    def _help(self, request: ChatRequest) -> ChatReply:
        return ChatReply(Messages.HELP, intent="help")
