import os
from itertools import count

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient
from faker import Faker
from faker.providers import internet, person
from shapely.geometry import Point
from tortoise import Tortoise

from doorctl.middleware import error_middleware, session_middleware
from doorctl.models import User
from doorctl.service.geofence import Geofence
from doorctl.service.manager.booking_manager import BookingManager
from doorctl.service.manager.ceremony_manager import CeremonyManager
from doorctl.service.manager.door_manager import DoorManager
from doorctl.service.rate_limiter import RateLimiter
from doorctl.service.sessions import SessionManager, SessionState
from doorctl.signals import register_signals
from doorctl.views import register_views
from tests.util import DummyCeremonyVerifier, FrozenClock, STUDIO_LATITUDE, STUDIO_LONGITUDE

fake = Faker()
fake.add_provider(internet)
fake.add_provider(person)

ORIGIN = "http://localhost:8080"


@pytest.fixture(scope="session")
def database_url():
    return os.getenv("TEST_DATABASE_URL", "sqlite://:memory:")


@pytest.fixture
async def database(database_url):
    await Tortoise.init(
        db_url=database_url,
        modules={'models': ['doorctl.models']},
        _enable_global_fallback=True,
    )
    await Tortoise.generate_schemas(safe=True)
    yield
    await Tortoise.close_connections()


@pytest.fixture
def random_user_factory(database):
    user_id = count(1)

    async def create_user():
        return await User.create(
            username=f"{fake.user_name()}{next(user_id)}", display_name=fake.name()
        )

    return create_user


@pytest.fixture
async def random_user(random_user_factory) -> User:
    """Creates a random user in the database."""
    return await random_user_factory()


@pytest.fixture
def session() -> SessionState:
    return SessionState()


@pytest.fixture
def verifier():
    return DummyCeremonyVerifier()


@pytest.fixture
def ceremony_manager(database, verifier) -> CeremonyManager:
    return CeremonyManager(verifier)


@pytest.fixture
def booking_manager(database) -> BookingManager:
    return BookingManager()


@pytest.fixture
def geofence() -> Geofence:
    return Geofence(Point(STUDIO_LONGITUDE, STUDIO_LATITUDE))


@pytest.fixture
def door_manager(booking_manager, geofence) -> DoorManager:
    return DoorManager(booking_manager, geofence)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def rate_limiter(clock) -> RateLimiter:
    return RateLimiter(1.0, 5, clock=clock)


@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager("test-session-secret", secure=False)


@pytest.fixture
async def client(
    aiohttp_client, database, session_manager, rate_limiter, ceremony_manager, booking_manager, door_manager
) -> TestClient:
    app = web.Application(middlewares=[error_middleware, session_middleware])

    app['session_manager'] = session_manager
    app['rate_limiter'] = rate_limiter
    app['rate_limit_sweep_period'] = 300
    app['trust_forwarded_for'] = True
    app['ceremony_manager'] = ceremony_manager
    app['booking_manager'] = booking_manager
    app['door_manager'] = door_manager

    register_signals(app, init_database=False)  # we get the database from a fixture
    register_views(app, "/api/v1", [ORIGIN])

    return await aiohttp_client(app)
