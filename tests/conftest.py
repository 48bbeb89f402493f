from datetime import date, timedelta

import pytest
from flask import Flask

from clinic.app_factory import create_app
from config import TestConfig
from extensions import db
from clinic.schemas import DoctorCreate, PatientCreate
from clinic.services import clinic_service, redis_service
from clinic.services.token_service import generate_token


class FakeRedis:
    """In-memory stand-in for the handful of redis commands the prescription store uses."""

    def __init__(self):
        self.values = {}
        self.sets = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, nx=False):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def exists(self, key):
        return int(key in self.values)

    def delete(self, key):
        return int(self.values.pop(key, None) is not None)

    def sadd(self, key, member):
        self.sets.setdefault(key, set()).add(str(member))

    def srem(self, key, member):
        self.sets.get(key, set()).discard(str(member))

    def smembers(self, key):
        return set(self.sets.get(key, set()))


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_service, "r", fake)
    return fake


@pytest.fixture
def app(fake_redis) -> Flask:
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app: Flask):
    return app.test_client()


@pytest.fixture
def future_date() -> str:
    return (date.today() + timedelta(days=30)).strftime("%Y-%m-%d")


@pytest.fixture
def admin_token(app):
    admin = clinic_service.create_admin("root", "admin123")
    return generate_token(admin.username, "admin")


@pytest.fixture
def doctor(app):
    return clinic_service.create_doctor(DoctorCreate(
        name="Dr. Meera Shah",
        specialty="Cardiology",
        email="meera@cityclinic.com",
        password="secret1",
        phone="9876543210",
        available_times=["09:00-10:00", "10:00-11:00", "14:00-15:00"],
    ))


@pytest.fixture
def other_doctor(app):
    return clinic_service.create_doctor(DoctorCreate(
        name="Dr. Arjun Rao",
        specialty="Dermatology",
        email="arjun@cityclinic.com",
        password="secret2",
        phone="9876500000",
        available_times=["15:00-16:00"],
    ))


@pytest.fixture
def doctor_token(doctor):
    return generate_token(doctor.email, "doctor")


@pytest.fixture
def patient(app):
    return clinic_service.create_patient(PatientCreate(
        name="asha verma",
        email="asha@example.com",
        password="patient1",
        phone="9123456780",
        address="12 Lake Road",
    ))


@pytest.fixture
def other_patient(app):
    return clinic_service.create_patient(PatientCreate(
        name="ravi kumar",
        email="ravi@example.com",
        password="patient2",
        phone="9000000001",
        address="4 Hill Street",
    ))


@pytest.fixture
def patient_token(patient):
    return generate_token(patient.email, "patient")
