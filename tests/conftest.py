import os

# Settings and the engine are built at import time, so these must come first
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from clinic.core.database import Base, SessionLocal, engine, redis_client
from clinic.core.security import get_password_hash, token_codec
from clinic.main import app
from clinic.models.admin import Admin
from clinic.models.doctor import Doctor
from clinic.models.patient import Patient

PASSWORD = "Secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    redis_client.flushdb()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db(test_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def make_admin(db):
    def _make(username="root"):
        admin = Admin(username=username, password_hash=PASSWORD_HASH)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin
    return _make

@pytest.fixture
def make_doctor(db):
    def _make(email="house@clinic.io", name="Gregory House", specialty="Diagnostics",
              available_times=("09:00", "10:00")):
        doctor = Doctor(
            name=name,
            specialty=specialty,
            email=email,
            password_hash=PASSWORD_HASH,
            available_times=list(available_times),
        )
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor
    return _make

@pytest.fixture
def make_patient(db):
    def _make(email="jane@mail.io", name="Jane Doe"):
        patient = Patient(name=name, email=email, password_hash=PASSWORD_HASH, phone="5550100")
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient
    return _make

@pytest.fixture
def auth_headers():
    def _headers(subject):
        return {"Authorization": f"Bearer {token_codec.issue(subject)}"}
    return _headers

@pytest.fixture
def future_day():
    return date.today() + timedelta(days=30)

def at(day, label):
    """Combine a date and an ``HH:MM`` label into a datetime."""
    hour, minute = (int(part) for part in label.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute)
