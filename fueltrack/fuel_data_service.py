"""
Data Service for FuelTrack
MongoDB-backed storage for users, vehicles and fuel entries, plus the
aggregation queries used by the stats endpoints and the chatbot.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, errors
from pymongo.database import Database

from .config import DB_CONFIG
from .constants import ErrorMessages, FuelTypes
from .errors import ApiError, NotFoundError

logger = logging.getLogger(__name__)

ENTRY_STRING_FIELDS = ('stationName', 'stationPlaceId', 'notes')


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what pymongo hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            raise ApiError(f"Invalid date: {value}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_object_id(value: Any, what: str = 'id') -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"Invalid {what}: {value}")


def _positive_number(payload: Dict[str, Any], key: str, required: bool = True) -> Optional[float]:
    value = payload.get(key)
    if value is None or value == '':
        if required:
            raise ApiError(f"{key} is required")
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ApiError(f"{key} must be a number")
    if number <= 0:
        raise ApiError(f"{key} must be greater than zero")
    return number


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """JSON-safe copy of a stored document (ObjectIds to str, datetimes to ISO)."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == 'password_hash':
            continue
        if key == '_id':
            key = 'id'
        if isinstance(value, ObjectId):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, dict):
            value = serialize(value)
        out[key] = value
    return out


class FuelDataService:
    """Service for reading and writing FuelTrack documents"""

    def __init__(self, db: Database) -> None:
        self.db = db
        self.users = db['users']
        self.vehicles = db['vehicles']
        self.fuel_entries = db['fuel_entries']

    @classmethod
    def from_config(cls) -> 'FuelDataService':
        client = MongoClient(DB_CONFIG['MONGO_URI'],
                             serverSelectionTimeoutMS=DB_CONFIG['SERVER_SELECTION_TIMEOUT_MS'])
        logger.info(f"Using MongoDB database '{DB_CONFIG['MONGO_DB']}'")
        return cls(client[DB_CONFIG['MONGO_DB']])

    def ensure_indexes(self) -> None:
        self.users.create_index([('email', ASCENDING)], unique=True)
        self.fuel_entries.create_index([('user', ASCENDING), ('date', DESCENDING)])
        self.vehicles.create_index([('user', ASCENDING)])

    # Users

    def create_user(self, email: str, password_hash: str, name: str) -> Dict[str, Any]:
        now = utcnow()
        doc = {
            'email': email.strip().lower(),
            'password_hash': password_hash,
            'name': name.strip(),
            'preferences': {
                'defaultFuelType': 'petrol',
                'currency': 'INR',
                'units': 'metric',
            },
            'created_at': now,
            'updated_at': now,
        }
        try:
            doc['_id'] = self.users.insert_one(doc).inserted_id
        except errors.DuplicateKeyError:
            raise ApiError(ErrorMessages.EMAIL_TAKEN)
        return doc

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.users.find_one({'email': (email or '').strip().lower()})

    def get_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        return self.users.find_one({'_id': to_object_id(user_id, 'user id')})

    def update_user(self, user_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
        update: Dict[str, Any] = {}
        if changes.get('name'):
            update['name'] = str(changes['name']).strip()
        preferences = changes.get('preferences') or {}
        fuel_type = preferences.get('defaultFuelType')
        if fuel_type is not None:
            if fuel_type not in FuelTypes.ENTRY_VALUES:
                raise ApiError(f"Invalid fuel type: {fuel_type}")
            update['preferences.defaultFuelType'] = fuel_type
        if preferences.get('currency'):
            update['preferences.currency'] = str(preferences['currency'])
        units = preferences.get('units')
        if units is not None:
            if units not in ('metric', 'imperial'):
                raise ApiError(f"Invalid units: {units}")
            update['preferences.units'] = units

        oid = to_object_id(user_id, 'user id')
        if update:
            update['updated_at'] = utcnow()
            self.users.update_one({'_id': oid}, {'$set': update})
        user = self.users.find_one({'_id': oid})
        if user is None:
            raise NotFoundError("User not found")
        return user

    def set_password_hash(self, user_id: Any, password_hash: str) -> None:
        self.users.update_one(
            {'_id': to_object_id(user_id, 'user id')},
            {'$set': {'password_hash': password_hash, 'updated_at': utcnow()}})

    # Vehicles

    def create_vehicle(self, user_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        fuel_type = payload.get('fuelType') or 'petrol'
        if fuel_type not in FuelTypes.ENTRY_VALUES:
            raise ApiError(f"Invalid fuel type: {fuel_type}")
        doc = {
            'user': to_object_id(user_id, 'user id'),
            'name': payload.get('name'),
            'model': payload.get('model'),
            'fuelType': fuel_type,
        }
        doc['_id'] = self.vehicles.insert_one(doc).inserted_id
        return doc

    def list_vehicles(self, user_id: Any) -> List[Dict[str, Any]]:
        return list(self.vehicles.find({'user': to_object_id(user_id, 'user id')}))

    # Fuel entries

    def create_entry(self, user_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        liters = _positive_number(payload, 'liters')
        price = _positive_number(payload, 'pricePerLiter')
        total_cost = _positive_number(payload, 'totalCost', required=False)
        if total_cost is None:
            total_cost = liters * price

        fuel_type = payload.get('fuelType') or 'petrol'
        if fuel_type not in FuelTypes.ENTRY_VALUES:
            raise ApiError(f"Invalid fuel type: {fuel_type}")

        now = utcnow()
        doc: Dict[str, Any] = {
            'user': to_object_id(user_id, 'user id'),
            'date': parse_date(payload['date']) if payload.get('date') else now,
            'liters': liters,
            'pricePerLiter': price,
            'totalCost': total_cost,
            'fuelType': fuel_type,
            'created_at': now,
            'updated_at': now,
        }
        if payload.get('vehicle'):
            doc['vehicle'] = to_object_id(payload['vehicle'], 'vehicle id')
        if payload.get('odometer') not in (None, ''):
            doc['odometer'] = _positive_number(payload, 'odometer')
        for key in ENTRY_STRING_FIELDS:
            if payload.get(key):
                doc[key] = str(payload[key])

        doc['_id'] = self.fuel_entries.insert_one(doc).inserted_id
        logger.info(f"Fuel entry saved for user {user_id}: {liters}L at {price}/L")
        return doc

    def list_entries(self, user_id: Any, q: Optional[str] = None,
                     start_date: Optional[str] = None, end_date: Optional[str] = None,
                     vehicle: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {'user': to_object_id(user_id, 'user id')}
        if vehicle:
            query['vehicle'] = to_object_id(vehicle, 'vehicle id')
        if start_date or end_date:
            query['date'] = {}
            if start_date:
                query['date']['$gte'] = parse_date(start_date)
            if end_date:
                query['date']['$lte'] = parse_date(end_date)
        if q:
            pattern = re.compile(re.escape(q), re.I)
            query['$or'] = [{'stationName': pattern}, {'notes': pattern}]
        return list(self.fuel_entries.find(query).sort('date', DESCENDING))

    def monthly_stats(self, user_id: Any, months: int = 12) -> List[Dict[str, Any]]:
        pipeline = [
            {'$match': {'user': to_object_id(user_id, 'user id')}},
            {'$group': {
                '_id': {'month': {'$month': '$date'}, 'year': {'$year': '$date'}},
                'totalCost': {'$sum': '$totalCost'},
                'totalLiters': {'$sum': '$liters'},
                'avgPrice': {'$avg': '$pricePerLiter'},
                'count': {'$sum': 1},
            }},
            {'$sort': {'_id.year': -1, '_id.month': -1}},
            {'$limit': months},
        ]
        return list(self.fuel_entries.aggregate(pipeline))

    def summary(self, user_id: Any) -> Dict[str, Any]:
        entries = self.list_entries(user_id)
        count = len(entries)
        return {
            'totalEntries': count,
            'totalCost': sum(e['totalCost'] for e in entries),
            'totalLiters': sum(e['liters'] for e in entries),
            'avgPrice': sum(e['pricePerLiter'] for e in entries) / count if count else 0,
            'lastEntry': serialize(entries[0]) if entries else None,
        }

    # Chatbot queries

    def spend_since(self, user_id: Any, since: datetime) -> Dict[str, Any]:
        pipeline = [
            {'$match': {'user': to_object_id(user_id, 'user id'), 'date': {'$gte': since}}},
            {'$group': {
                '_id': None,
                'total_cost': {'$sum': '$totalCost'},
                'total_liters': {'$sum': '$liters'},
                'count': {'$sum': 1},
            }},
        ]
        rows = list(self.fuel_entries.aggregate(pipeline))
        if not rows:
            return {'total_cost': 0.0, 'total_liters': 0.0, 'count': 0}
        row = rows[0]
        return {
            'total_cost': float(row['total_cost']),
            'total_liters': float(row['total_liters']),
            'count': int(row['count']),
        }

    def average_recent_price(self, user_id: Any, limit: int = 10) -> Optional[Dict[str, Any]]:
        """Mean pricePerLiter over the newest `limit` entries, or None without entries."""
        cursor = (self.fuel_entries
                  .find({'user': to_object_id(user_id, 'user id')}, {'pricePerLiter': 1})
                  .sort('date', DESCENDING)
                  .limit(limit))
        prices = [e['pricePerLiter'] for e in cursor]
        if not prices:
            return None
        return {'average': sum(prices) / len(prices), 'count': len(prices)}

    def latest_entry(self, user_id: Any) -> Optional[Dict[str, Any]]:
        return self.fuel_entries.find_one(
            {'user': to_object_id(user_id, 'user id')}, sort=[('date', DESCENDING)])
