"""
Shared fixtures: an in-memory SQLite database seeded with a small directory
of patients and doctors, and a TestClient wired to it.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clinicbook.database import Base, get_db  # noqa: E402
from clinicbook.main import app  # noqa: E402
from clinicbook.models import Doctor, Patient  # noqa: E402

# Fixed "now" for services under test; all bookings are made after it
NOW = datetime(2030, 1, 1, 9, 0, 0)

PATIENT_ID = 1
OTHER_PATIENT_ID = 2
DOCTOR_ID = 1
UNAVAILABLE_DOCTOR_ID = 2
MISSING_ID = 999


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = factory()
    db.add_all(
        [
            Patient(id=PATIENT_ID, full_name="Ana Perez"),
            Patient(id=OTHER_PATIENT_ID, full_name="Luis Gomez"),
            Doctor(id=DOCTOR_ID, full_name="Dr. Rivera", specialization="Cardiology"),
            Doctor(
                id=UNAVAILABLE_DOCTOR_ID,
                full_name="Dr. Chen",
                specialization="Dermatology",
                is_available=False,
            ),
        ]
    )
    db.commit()
    db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
