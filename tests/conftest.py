"""Shared fixtures: in-memory database, homes and authenticated API client."""
import pytest
from datetime import date, datetime, timedelta
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from furnacelog import config
from furnacelog.db.config import build_engine, get_session
from furnacelog.db.init import init_db
from furnacelog.events.publisher import EventPublisher
from furnacelog.main import app
from furnacelog.models.home import Home
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.models.weather import WeatherObservation
from furnacelog.utils.metrics import metrics_collector


class RecordingPublisher(EventPublisher):
    """Publisher that keeps events in memory instead of calling the sidecar."""

    def __init__(self):
        super().__init__(enabled=False)
        self.events = []

    def publish_event(self, topic, event_type, data, source="furnacelog-schedule"):
        self.events.append((topic, event_type, data))
        return {"success": True, "published": False}


def make_token(user_id: str, secret: str = None, expires_in: timedelta = timedelta(hours=1)) -> str:
    payload = {"sub": user_id, "email": f"{user_id}@example.com", "exp": datetime.utcnow() + expires_in}
    return jwt.encode(payload, secret or config.AUTH_SECRET, algorithm=config.AUTH_ALGORITHM)


def make_log(system_id, performed_on, parts=0.0, labor=0.0, other=0.0, system_type="furnace", log_id=None, home_id=1):
    return MaintenanceLog(
        id=log_id,
        home_id=home_id,
        system_id=system_id,
        system_name=system_id.replace("-", " ").title(),
        system_type=system_type,
        performed_on=performed_on,
        parts_cost=parts,
        labor_cost=labor,
        other_cost=other,
    )


def make_observation(observed_on, low=-10.0, high=0.0, mean=None, events=None, precipitation=0.0, community="Yellowknife"):
    return WeatherObservation(
        community=community,
        observed_on=observed_on,
        temp_low=low,
        temp_high=high,
        temp_mean=(low + high) / 2 if mean is None else mean,
        precipitation_mm=precipitation,
        extreme_events=events or [],
    )


def cold_snap(severity="severe"):
    return {"type": "cold-snap", "severity": severity, "description": "Extended cold"}


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics_collector.reset()
    yield
    metrics_collector.reset()


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as db:
        yield db


@pytest.fixture
def home(session):
    owned = Home(user_id="user-1", name="Cabin on Frame Lake", community="Yellowknife", timezone="America/Yellowknife")
    session.add(owned)
    session.commit()
    session.refresh(owned)
    return owned


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as db:
            yield db

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token('user-1')}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {make_token('user-2')}"}


@pytest.fixture
def future():
    """A date safely after today in any time zone."""
    return date.today() + timedelta(days=30)
