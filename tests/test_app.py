import pytest

from fueltrack.config import OSM_CONFIG
from fueltrack.constants import ErrorMessages, Messages

from .conftest import FakeResponse

OVERPASS_URL = OSM_CONFIG['OVERPASS_URL']


def register(client, email='asha@example.com', password='secret1', name='Asha'):
    resp = client.post('/api/auth/register', json={'email': email, 'password': password, 'name': name})
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def auth_headers(client):
    token = register(client)['token']
    return {'Authorization': f"Bearer {token}"}


def test_health(client):
    assert client.get('/api/health').get_json() == {'ok': True}


@pytest.mark.parametrize("query", ['', '?lat=12.97', '?lng=77.59', '?lat=&lng=77.59'])
def test_nearby_requires_coordinates(client, query):
    resp = client.get(f'/api/stations/nearby{query}')
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Latitude and longitude are required'}


@pytest.mark.parametrize("query, message", [
    ('?lat=abc&lng=77.59', ErrorMessages.INVALID_COORDINATES),
    ('?lat=95&lng=77.59', ErrorMessages.INVALID_COORDINATES),
    ('?lat=12.97&lng=77.59&radius=-5', ErrorMessages.INVALID_RADIUS),
    ('?lat=12.97&lng=77.59&radius=far', ErrorMessages.INVALID_RADIUS),
])
def test_nearby_rejects_bad_parameters(client, query, message):
    resp = client.get(f'/api/stations/nearby{query}')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == message


def test_nearby_returns_stations(client, fake_session):
    fake_session.routes[OVERPASS_URL] = FakeResponse({'elements': [{
        'type': 'node', 'id': 42, 'lat': 12.973, 'lon': 77.5946,
        'tags': {'amenity': 'fuel', 'brand': 'Indian Oil', 'name': 'Hebbal Petrol Pump',
                 'addr:street': 'Bellary Road', 'addr:city': 'Bengaluru'},
    }]})
    resp = client.get('/api/stations/nearby?lat=12.9716&lng=77.5946')

    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is True
    assert body['provider'] == 'osm'
    assert body['count'] == 1
    assert body['searchRadius'] == 3000
    assert body['stations'][0]['name'] == 'Hebbal Petrol Pump'
    assert body['stations'][0]['address'] == 'Bellary Road, Bengaluru'


def test_nearby_with_provider_outage_is_empty_success(client):
    resp = client.get('/api/stations/nearby?lat=12.9716&lng=77.5946&radius=2000')
    assert resp.status_code == 200
    assert resp.get_json()['count'] == 0


def test_register_login_and_profile(client):
    body = register(client)
    assert body['user']['email'] == 'asha@example.com'
    assert 'password_hash' not in body['user']

    resp = client.post('/api/auth/login', json={'email': 'asha@example.com', 'password': 'secret1'})
    assert resp.status_code == 200
    token = resp.get_json()['token']

    profile = client.get('/api/auth/profile', headers={'Authorization': f"Bearer {token}"})
    assert profile.get_json()['user']['name'] == 'Asha'


def test_register_duplicate_email(client):
    register(client)
    resp = client.post('/api/auth/register',
                       json={'email': 'asha@example.com', 'password': 'secret1', 'name': 'A'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == ErrorMessages.EMAIL_TAKEN


def test_bad_login_is_unauthorized(client):
    register(client)
    resp = client.post('/api/auth/login', json={'email': 'asha@example.com', 'password': 'nope!!'})
    assert resp.status_code == 401


def test_protected_routes_need_a_token(client):
    resp = client.get('/api/fuel')
    assert resp.status_code == 401
    assert resp.get_json() == {'error': ErrorMessages.NO_TOKEN}

    resp = client.get('/api/fuel', headers={'Authorization': 'Bearer garbage'})
    assert resp.status_code == 401
    assert resp.get_json() == {'error': ErrorMessages.INVALID_TOKEN}


def test_update_profile_and_change_password(client, auth_headers):
    resp = client.put('/api/auth/profile', headers=auth_headers,
                      json={'preferences': {'defaultFuelType': 'diesel'}})
    assert resp.get_json()['user']['preferences']['defaultFuelType'] == 'diesel'

    resp = client.post('/api/auth/change-password', headers=auth_headers,
                       json={'currentPassword': 'secret1', 'newPassword': 'secret2'})
    assert resp.status_code == 200
    resp = client.post('/api/auth/login', json={'email': 'asha@example.com', 'password': 'secret2'})
    assert resp.status_code == 200


def test_fuel_entries(client, auth_headers):
    resp = client.post('/api/fuel', headers=auth_headers,
                       json={'liters': 20, 'pricePerLiter': 102.5, 'date': '2024-05-02T09:00:00Z',
                             'stationName': 'Shell MG Road'})
    assert resp.status_code == 201
    entry = resp.get_json()['entry']
    assert entry['totalCost'] == 2050
    assert entry['date'] == '2024-05-02T09:00:00'

    client.post('/api/fuel', headers=auth_headers,
                json={'liters': 10, 'pricePerLiter': 100, 'date': '2024-04-02'})

    entries = client.get('/api/fuel', headers=auth_headers).get_json()['entries']
    assert [e['date'][:7] for e in entries] == ['2024-05', '2024-04']

    found = client.get('/api/fuel?q=shell', headers=auth_headers).get_json()['entries']
    assert len(found) == 1

    summary = client.get('/api/fuel/summary', headers=auth_headers).get_json()
    assert summary['totalEntries'] == 2
    assert summary['totalLiters'] == 30

    stats = client.get('/api/fuel/stats', headers=auth_headers).get_json()['stats']
    assert len(stats) == 2


def test_invalid_fuel_entry(client, auth_headers):
    resp = client.post('/api/fuel', headers=auth_headers, json={'liters': 20})
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'pricePerLiter is required'}


def test_vehicles(client, auth_headers):
    resp = client.post('/api/vehicles', headers=auth_headers, json={'name': 'Swift', 'model': 'VXi'})
    assert resp.status_code == 201
    vehicles = client.get('/api/vehicles', headers=auth_headers).get_json()['vehicles']
    assert [v['name'] for v in vehicles] == ['Swift']


def test_chatbot_anonymous_data_intent(client):
    resp = client.post('/api/chatbot/message', json={'text': 'how much have I spent this month?'})
    assert resp.status_code == 200
    assert resp.get_json()['reply'] == Messages.LOGIN_REQUIRED


def test_chatbot_with_user(client, auth_headers):
    client.post('/api/fuel', headers=auth_headers, json={'liters': 20, 'pricePerLiter': 100})
    client.post('/api/fuel', headers=auth_headers, json={'liters': 20, 'pricePerLiter': 100})

    resp = client.post('/api/chatbot/message', headers=auth_headers,
                       json={'text': 'How much have I spent this month?'})
    body = resp.get_json()
    assert "₹4000.00" in body['reply']
    assert "40.0 liters" in body['reply']
    assert "2 fill-ups" in body['reply']
    assert body['hasStations'] is False


def test_chatbot_near_me_without_location(client, fake_session):
    resp = client.post('/api/chatbot/message', json={'text': 'find gas stations near me'})
    assert resp.get_json()['reply'] == Messages.LOCATION_REQUEST
    assert fake_session.calls == []


def test_chatbot_requires_text(client):
    resp = client.post('/api/chatbot/message', json={'text': '   '})
    assert resp.status_code == 400


def test_cors_headers_for_configured_origin(client):
    resp = client.get('/api/health', headers={'Origin': 'http://localhost:3000'})
    assert resp.headers['Access-Control-Allow-Origin'] == 'http://localhost:3000'

    resp = client.get('/api/health', headers={'Origin': 'http://evil.example'})
    assert 'Access-Control-Allow-Origin' not in resp.headers


def test_unknown_route_is_json_404(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert 'error' in resp.get_json()


def test_nearby_survives_malformed_provider_payload(client, fake_session):
    fake_session.routes[OVERPASS_URL] = FakeResponse({'elements': {'unexpected': True}})
    resp = client.get('/api/stations/nearby?lat=12.9716&lng=77.5946')
    assert resp.status_code == 200
    assert resp.get_json()['count'] == 0
