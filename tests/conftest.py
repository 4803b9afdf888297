from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from sos_dispatch.config import Settings
from sos_dispatch.db import make_engine
from sos_dispatch.engine import DispatchEngine
from sos_dispatch.fleet import FleetStore
from sos_dispatch.incidents import IncidentStore
from sos_dispatch.main import create_app
from sos_dispatch.models import AmbulanceCreate, AmbulanceStatus


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start=datetime(2024, 12, 1, 8, 45, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def engine():
    return make_engine("sqlite://")


@pytest.fixture
def fleet(engine):
    return FleetStore(engine)


@pytest.fixture
def incidents(engine):
    return IncidentStore(engine, display_timezone="Asia/Kolkata")


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def dispatch(fleet, incidents, clock):
    return DispatchEngine(fleet, incidents, clock=clock)


@pytest.fixture
def add_ambulance(fleet):
    counter = {"n": 0}

    def _add(ambulance_id, latitude, longitude, status=AmbulanceStatus.AVAILABLE):
        counter["n"] += 1
        return fleet.create(AmbulanceCreate(
            id=ambulance_id,
            vehicle_number=f"RJ-14-TS-{counter['n']:04d}",
            driver_name=f"Driver {ambulance_id}",
            driver_phone=f"+91 90000 {counter['n']:05d}",
            status=status,
            latitude=latitude,
            longitude=longitude,
        ))

    return _add


@pytest.fixture
def app():
    return create_app(Settings(simulator_enabled=False))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
