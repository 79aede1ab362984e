"""
FuelTrack HTTP API
JSON endpoints for accounts, fuel entries, vehicles, nearby station search
and the chatbot. Services are injected through create_app so tests can run
against fakes.
"""

import logging
from functools import wraps
from typing import Any, Dict, Optional, Tuple

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .auth import AuthService
from .chatbot import ChatbotRouter, ChatRequest
from .config import SEARCH_CONFIG, SERVER_CONFIG
from .constants import ErrorMessages
from .errors import ApiError, AuthError
from .fuel_data_service import FuelDataService, serialize
from .station_service import StationSearchService

logger = logging.getLogger(__name__)


def parse_coordinates(args) -> Tuple[float, float]:
    lat, lng = args.get('lat'), args.get('lng')
    if lat in (None, '') or lng in (None, ''):
        raise ApiError(ErrorMessages.MISSING_COORDINATES)
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ApiError(ErrorMessages.INVALID_COORDINATES)
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ApiError(ErrorMessages.INVALID_COORDINATES)
    return lat, lng


def parse_radius(value: Optional[str]) -> int:
    if value in (None, ''):
        return SEARCH_CONFIG['DEFAULT_RADIUS_M']
    try:
        radius = int(value)
    except (TypeError, ValueError):
        raise ApiError(ErrorMessages.INVALID_RADIUS)
    if radius <= 0:
        raise ApiError(ErrorMessages.INVALID_RADIUS)
    return radius


def _optional_float(value: Any) -> Optional[float]:
    if value in (None, ''):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ApiError(ErrorMessages.INVALID_COORDINATES)


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_app(station_service: Optional[StationSearchService] = None,
               data_service: Optional[FuelDataService] = None,
               auth_service: Optional[AuthService] = None,
               chatbot: Optional[ChatbotRouter] = None) -> Flask:
    app = Flask(__name__)

    data = data_service or FuelDataService.from_config()
    stations = station_service or StationSearchService()
    auth = auth_service or AuthService(data)
    bot = chatbot or ChatbotRouter(stations, data)

    app.extensions['fueltrack'] = {
        'stations': stations,
        'data': data,
        'auth': auth,
        'chatbot': bot,
    }

    def login_required(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            g.user = auth.authenticate(request.headers.get('Authorization'))
            return view(*args, **kwargs)
        return wrapped

    def optional_user_id() -> Optional[str]:
        header = request.headers.get('Authorization')
        if not header:
            return None
        try:
            return str(auth.authenticate(header)['_id'])
        except AuthError as e:
            logger.info(f"Ignoring chatbot credentials: {e.message}")
            return None

    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        return jsonify({'error': e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get('Origin')
        if origin and origin in SERVER_CONFIG['CORS_ORIGINS']:
            response.headers['Access-Control-Allow-Origin'] = origin
            response.headers['Access-Control-Allow-Credentials'] = 'true'
            response.headers['Access-Control-Allow-Headers'] = 'Authorization, Content-Type'
            response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, OPTIONS'
            response.headers['Vary'] = 'Origin'
        return response

    @app.get('/api/health')
    def health():
        return jsonify({'ok': True})

    # Auth

    @app.post('/api/auth/register')
    def register():
        body = _json_body()
        token, user = auth.register(body.get('email'), body.get('password'), body.get('name'))
        return jsonify({'token': token, 'user': serialize(user)}), 201

    @app.post('/api/auth/login')
    def login():
        body = _json_body()
        token, user = auth.login(body.get('email'), body.get('password'))
        return jsonify({'token': token, 'user': serialize(user)})

    @app.get('/api/auth/profile')
    @login_required
    def get_profile():
        return jsonify({'user': serialize(g.user)})

    @app.put('/api/auth/profile')
    @login_required
    def update_profile():
        user = data.update_user(g.user['_id'], _json_body())
        return jsonify({'user': serialize(user)})

    @app.post('/api/auth/change-password')
    @login_required
    def change_password():
        body = _json_body()
        auth.change_password(g.user, body.get('currentPassword'), body.get('newPassword'))
        return jsonify({'message': 'Password updated'})

    # Fuel entries

    @app.post('/api/fuel')
    @login_required
    def create_entry():
        entry = data.create_entry(g.user['_id'], _json_body())
        return jsonify({'entry': serialize(entry)}), 201

    @app.get('/api/fuel')
    @login_required
    def list_entries():
        entries = data.list_entries(
            g.user['_id'],
            q=request.args.get('q'),
            start_date=request.args.get('startDate'),
            end_date=request.args.get('endDate'),
            vehicle=request.args.get('vehicle'),
        )
        return jsonify({'entries': [serialize(e) for e in entries]})

    @app.get('/api/fuel/stats')
    @login_required
    def fuel_stats():
        return jsonify({'stats': data.monthly_stats(g.user['_id'])})

    @app.get('/api/fuel/summary')
    @login_required
    def fuel_summary():
        return jsonify(data.summary(g.user['_id']))

    # Vehicles

    @app.post('/api/vehicles')
    @login_required
    def create_vehicle():
        vehicle = data.create_vehicle(g.user['_id'], _json_body())
        return jsonify({'vehicle': serialize(vehicle)}), 201

    @app.get('/api/vehicles')
    @login_required
    def list_vehicles():
        return jsonify({'vehicles': [serialize(v) for v in data.list_vehicles(g.user['_id'])]})

    # Stations and chatbot

    @app.get('/api/stations/nearby')
    def nearby_stations():
        lat, lng = parse_coordinates(request.args)
        radius = parse_radius(request.args.get('radius'))
        result = stations.find_nearby(lat, lng, radius)
        return jsonify(result.to_dict())

    @app.post('/api/chatbot/message')
    def chatbot_message():
        body = _json_body()
        text = body.get('text')
        if not isinstance(text, str) or not text.strip():
            raise ApiError("Message text is required")
        reply = bot.respond(ChatRequest(
            text=text,
            latitude=_optional_float(body.get('lat')),
            longitude=_optional_float(body.get('lng')),
            user_id=optional_user_id(),
        ))
        return jsonify(reply.to_dict())

    return app
