"""
Pytest configuration and fixtures.

Every test gets its own in-memory SQLite database and a fake Strava API
served through httpx.MockTransport, so nothing leaves the process.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRAVA_CLIENT_ID", "12345")
os.environ.setdefault("STRAVA_CLIENT_SECRET", "test-secret")
os.environ.setdefault("STRAVA_REDIRECT_URI", "http://testserver/strava/callback")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from runlog import strava
from runlog.db import get_session
from runlog.main import app
from runlog.models import Base, User


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = TestingSession()

    def _override_get_session():
        yield session

    app.dependency_overrides[get_session] = _override_get_session
    yield session

    app.dependency_overrides.pop(get_session, None)
    session.close()
    engine.dispose()


@pytest.fixture
def client(db_session):
    return TestClient(app)


class FakeStrava:
    """Canned Strava responses keyed by (method, path)."""

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json=None):
        self.routes[(method, path)] = (status, json)

    def on_call(self, method: str, path: str, fn):
        self.routes[(method, path)] = fn

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Record Not Found"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)


@pytest.fixture
def fake_strava(monkeypatch):
    fake = FakeStrava()

    def _client(timeout=None):
        return httpx.AsyncClient(transport=httpx.MockTransport(fake.handler), timeout=timeout or 5)

    monkeypatch.setattr(strava, "_client", _client)
    return fake


@pytest.fixture
def make_strava_activity():
    def _make(activity_id, distance=10000.0, moving_time=3000, sport_type="Run", **extra):
        data = {
            "id": activity_id,
            "name": f"Morning Run {activity_id}",
            "type": sport_type,
            "sport_type": sport_type,
            "distance": distance,
            "moving_time": moving_time,
            "elapsed_time": moving_time + 120,
            "total_elevation_gain": 42.0,
            "start_date": "2024-03-10T07:30:00Z",
            "start_date_local": "2024-03-10T08:30:00Z",
            "map": {"id": f"a{activity_id}", "summary_polyline": "abc~def", "resource_state": 2},
        }
        data.update(extra)
        return data
    return _make


@pytest.fixture
def connected_user(db_session):
    user = User(
        id="runner-1",
        name="Test Runner",
        strava_athlete_id=777,
        strava_access_token="access-current",
        strava_refresh_token="refresh-current",
        strava_token_expires_at=4_102_444_800,  # 2100-01-01
    )
    db_session.add(user)
    db_session.commit()
    return user
