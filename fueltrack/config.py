"""
Configuration file for the FuelTrack backend
Centralizes configurable values and the environment-supplied settings
"""

import os

from dotenv import load_dotenv

current_dir = os.path.dirname(os.path.abspath(__file__))
repo_root = os.path.abspath(os.path.join(current_dir, '..'))

if os.path.exists(os.path.join(repo_root, '.env')):
    load_dotenv(os.path.join(repo_root, '.env'))
else:
    load_dotenv()

# Placeholder value shipped in sample .env files; treated as "no key"
GOOGLE_KEY_PLACEHOLDER = 'YOUR_GOOGLE_PLACES_KEY'

# Search Configuration - radius values in meters
SEARCH_CONFIG = {
    'DEFAULT_RADIUS_M': 3000,  # /api/stations/nearby default
    'CHATBOT_RADIUS_M': 5000,  # radius used by the chatbot "near me" intent
    'RADIUS_BUFFER_M': 1000,  # tolerance for results just outside the radius
    'MAX_RESULTS': 20,
    'GOOGLE_MAX_RADIUS_M': 50000,
}

# OpenStreetMap (Overpass + Nominatim) Configuration
OSM_CONFIG = {
    'OVERPASS_URL': 'https://overpass-api.de/api/interpreter',
    'NOMINATIM_SEARCH_URL': 'https://nominatim.openstreetmap.org/search',
    'NOMINATIM_REVERSE_URL': 'https://nominatim.openstreetmap.org/reverse',
    'MAX_RADIUS_M': 10000,
    'OVERPASS_TIMEOUT_SECONDS': 15,
    'MAX_CANDIDATES': 10,  # raw Overpass elements considered per search
    'MAX_ENRICHMENT_CALLS': 8,  # reverse-geocode lookups per search
    'ENRICHMENT_INTERVAL_SECONDS': 1.1,  # Nominatim allows 1 request per second
    'NOMINATIM_LIMIT': 15,
    'LAT_KM_PER_DEGREE': 110.574,
    'LNG_KM_PER_DEGREE_AT_EQUATOR': 111.320,
}

# API Configuration
API_CONFIG = {
    'PLACES_PROVIDER': os.getenv('PLACES_PROVIDER', 'osm'),
    'GOOGLE_PLACES_API_KEY': os.getenv('GOOGLE_PLACES_API_KEY', ''),
    'GOOGLE_NEARBY_URL': 'https://maps.googleapis.com/maps/api/place/nearbysearch/json',
    'USER_AGENT': 'FuelTrackAI/1.0',
    'REQUEST_TIMEOUT': 15,
}

# Chatbot Configuration
CHATBOT_CONFIG = {
    'CURRENCY_SYMBOL': '₹',
    'AVERAGE_PRICE_WINDOW': 10,  # entries used for the average price intent
    'MAX_LISTED_STATIONS': 5,
}

# Database Configuration
DB_CONFIG = {
    'MONGO_URI': os.getenv('MONGO_URI', 'mongodb://localhost:27017'),
    'MONGO_DB': os.getenv('MONGO_DB', 'fueltrack'),
    'SERVER_SELECTION_TIMEOUT_MS': 5000,
}

# Auth Configuration
AUTH_CONFIG = {
    'JWT_SECRET': os.getenv('JWT_SECRET', 'dev-secret-change-me'),
    'TOKEN_MAX_AGE_SECONDS': int(os.getenv('TOKEN_MAX_AGE_SECONDS', str(7 * 24 * 3600))),
    'TOKEN_SALT': 'fueltrack-auth',
    'MIN_PASSWORD_LENGTH': 6,
}

# Server Configuration
SERVER_CONFIG = {
    'PORT': int(os.getenv('PORT', '5000')),
    'CORS_ORIGINS': [o.strip() for o in os.getenv(
        'CORS_ORIGINS', 'http://localhost:3000').split(',') if o.strip()],
}
