"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.core.database import get_session
from app.fleet.store import append_checklist
from app.main import app
from app.models import ChecklistKind, ChecklistRecord, VehicleModel

BASE_TIME = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    """Timestamp a number of minutes after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with the test database session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="make_checklist")
def make_checklist_fixture():
    """Factory for unsaved checklist records with sensible defaults."""

    def make(kind: ChecklistKind, plate: str, submitted_at, **overrides) -> ChecklistRecord:
        values = {
            "kind": kind,
            "vehicle_plate": plate,
            "vehicle_model": VehicleModel.FIORINO,
            "driver_name": "João Silva",
            "odometer_km": 1000,
            "fluid_levels_ok": True,
            "lights_ok": True,
            "emergency_items_ok": True,
            "roadworthy": True,
            "submitted_at": submitted_at,
        }
        values.update(overrides)
        return ChecklistRecord(**values)

    return make


@pytest.fixture(name="stored_trip_records")
def stored_trip_records_fixture(session: Session, make_checklist) -> list[ChecklistRecord]:
    """A departure with its arrival for ABC1234 plus a standalone arrival."""
    records = [
        make_checklist(ChecklistKind.DEPARTURE, "ABC1234", at(0), odometer_km=15000),
        make_checklist(ChecklistKind.ARRIVAL, "ABC1234", at(9 * 60), odometer_km=15230),
        make_checklist(ChecklistKind.ARRIVAL, "XYZ9999", at(60), odometer_km=800),
    ]
    return [append_checklist(session, record) for record in records]
