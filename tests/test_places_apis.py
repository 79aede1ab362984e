import pytest
import requests

from fueltrack.config import API_CONFIG, GOOGLE_KEY_PLACEHOLDER, OSM_CONFIG
from fueltrack.errors import ProviderError
from fueltrack.places_apis import PlacesApiManager, build_overpass_query, is_usable_key

from .conftest import FakeResponse

GOOGLE_URL = API_CONFIG['GOOGLE_NEARBY_URL']
OVERPASS_URL = OSM_CONFIG['OVERPASS_URL']
SEARCH_URL = OSM_CONFIG['NOMINATIM_SEARCH_URL']
REVERSE_URL = OSM_CONFIG['NOMINATIM_REVERSE_URL']


@pytest.mark.parametrize("key, usable", [
    (None, False),
    ("", False),
    ("   ", False),
    (GOOGLE_KEY_PLACEHOLDER, False),
    ("AIza-real-looking-key", True),
])
def test_is_usable_key(key, usable):
    assert is_usable_key(key) is usable


def test_overpass_query_covers_nodes_and_ways():
    query = build_overpass_query(12.97, 77.59, 3000)
    assert query.startswith('[out:json][timeout:15];')
    assert 'node["amenity"="fuel"](around:3000,12.97,77.59);' in query
    assert 'way["amenity"="fuel"](around:3000,12.97,77.59);' in query
    assert query.endswith('out center tags;')


def test_placeholder_google_key_fails_before_any_request(fake_session):
    api = PlacesApiManager(google_api_key=GOOGLE_KEY_PLACEHOLDER, session=fake_session)
    with pytest.raises(ProviderError) as exc:
        api.google_nearby(12.97, 77.59, 3000)
    assert exc.value.provider == 'google'
    assert fake_session.calls == []


def test_google_nearby_returns_results(fake_session):
    fake_session.routes[GOOGLE_URL] = FakeResponse({'status': 'OK', 'results': [{'name': 'Shell'}]})
    api = PlacesApiManager(google_api_key='real-key', session=fake_session)

    assert api.google_nearby(12.97, 77.59, 3000) == [{'name': 'Shell'}]
    params = fake_session.calls[0]['params']
    assert params['location'] == '12.97,77.59'
    assert params['type'] == 'gas_station'
    assert params['key'] == 'real-key'


def test_google_zero_results_is_empty(fake_session):
    fake_session.routes[GOOGLE_URL] = FakeResponse({'status': 'ZERO_RESULTS', 'results': []})
    api = PlacesApiManager(google_api_key='real-key', session=fake_session)
    assert api.google_nearby(12.97, 77.59, 3000) == []


def test_google_error_status_raises(fake_session):
    fake_session.routes[GOOGLE_URL] = FakeResponse({'status': 'REQUEST_DENIED'})
    api = PlacesApiManager(google_api_key='real-key', session=fake_session)
    with pytest.raises(ProviderError, match='REQUEST_DENIED'):
        api.google_nearby(12.97, 77.59, 3000)


def test_overpass_request_shape(api, fake_session):
    fake_session.routes[OVERPASS_URL] = FakeResponse({'elements': [{'id': 1}]})

    assert api.overpass_fuel_stations(12.97, 77.59, 3000) == [{'id': 1}]
    call = fake_session.calls[0]
    assert 'around:3000' in call['params']['data']
    assert call['headers']['User-Agent'] == 'FuelTrackAI/1.0'
    assert call['timeout'] == 15


@pytest.mark.parametrize("route, message", [
    (FakeResponse({}, status_code=504), 'HTTP 504'),
    (requests.exceptions.Timeout('read timed out'), 'timeout'),
    (requests.exceptions.ConnectionError('refused'), 'network error'),
    (FakeResponse(invalid_json=True), 'invalid JSON'),
])
def test_overpass_failures_become_provider_errors(api, fake_session, route, message):
    fake_session.routes[OVERPASS_URL] = route
    with pytest.raises(ProviderError, match=message) as exc:
        api.overpass_fuel_stations(12.97, 77.59, 3000)
    assert exc.value.provider == 'overpass'


def test_nominatim_search_params(api, fake_session):
    fake_session.routes[SEARCH_URL] = FakeResponse([])

    assert api.nominatim_fuel_search((77.5, 13.0, 77.6, 12.9)) == []
    params = fake_session.calls[0]['params']
    assert params['amenity'] == 'fuel'
    assert params['bounded'] == 1
    assert params['viewbox'] == '77.5,13.0,77.6,12.9'
    assert params['limit'] == 15


def test_nominatim_search_rejects_non_list(api, fake_session):
    fake_session.routes[SEARCH_URL] = FakeResponse({'error': 'bad request'})
    with pytest.raises(ProviderError):
        api.nominatim_fuel_search((77.5, 13.0, 77.6, 12.9))


def test_reverse_geocode_error_payload(api, fake_session):
    fake_session.routes[REVERSE_URL] = FakeResponse({'error': 'Unable to geocode'})
    with pytest.raises(ProviderError) as exc:
        api.reverse_geocode(12.97, 77.59)
    assert exc.value.provider == 'nominatim'


def test_reverse_geocode_params(api, fake_session):
    fake_session.routes[REVERSE_URL] = FakeResponse({'display_name': 'MG Road'})
    assert api.reverse_geocode(12.97, 77.59) == {'display_name': 'MG Road'}
    params = fake_session.calls[0]['params']
    assert params['zoom'] == 18
    assert params['namedetails'] == 1
