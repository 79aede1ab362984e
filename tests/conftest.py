import mongomock
import pytest
import requests

from fueltrack.app import create_app
from fueltrack.auth import AuthService
from fueltrack.fuel_data_service import FuelDataService
from fueltrack.places_apis import PlacesApiManager
from fueltrack.station_service import StationSearchService


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """Stands in for requests.Session, answering by URL.

    A route is a FakeResponse, an exception instance to raise, a callable
    taking the request params, or a list of those consumed in order (the
    last one repeats).
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'params': params, 'headers': headers, 'timeout': timeout})
        handler = self.routes.get(url)
        if handler is None:
            raise requests.exceptions.ConnectionError(f"no route for {url}")
        if isinstance(handler, list):
            handler = handler.pop(0) if len(handler) > 1 else handler[0]
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            handler = handler(params or {})
        return handler

    def calls_to(self, url):
        return [c for c in self.calls if c['url'] == url]


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self, start=0.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api(fake_session):
    return PlacesApiManager(google_api_key='', session=fake_session)


@pytest.fixture
def station_service(api, clock):
    return StationSearchService(api=api, provider_name='osm', clock=clock, sleep=clock.sleep)


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()['fueltrack_test']


@pytest.fixture
def data_service(mongo_db):
    service = FuelDataService(mongo_db)
    service.ensure_indexes()
    return service


@pytest.fixture
def auth_service(data_service):
    return AuthService(data_service, secret='test-secret')


@pytest.fixture
def user(data_service):
    return data_service.create_user('driver@example.com', 'not-a-real-hash', 'Asha')


@pytest.fixture
def app(station_service, data_service, auth_service):
    app = create_app(station_service=station_service, data_service=data_service,
                     auth_service=auth_service)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
