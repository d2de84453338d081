"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database shared through a StaticPool
- Two clinics with patients in various device states
- TestClient with the database dependency overridden and bearer tokens minted per clinic
"""
from datetime import datetime
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_notify.api.deps import get_db
from clinic_notify.core.security import create_access_token
from clinic_notify.database import Base
from clinic_notify.main import app
from clinic_notify.models import AppInstallation, Clinic, Notification, Patient


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Tenant Fixtures
# =============================================================================

def _add_patient(db: Session, clinic: Clinic, name: str, *, token: bool = True, app_installed: bool = True) -> Patient:
    patient = Patient(
        clinic_id=clinic.id,
        name=name,
        mobile="+919800000000",
        fcm_token=f"fcm-{name.lower().replace(' ', '-')}" if token else None,
    )
    db.add(patient)
    db.flush()
    if app_installed:
        db.add(AppInstallation(patient_id=patient.id, device_type="android", app_version="2.1.0", is_active=True))
    return patient


@pytest.fixture(scope="function")
def clinic(db: Session) -> Clinic:
    clinic = Clinic(name="Sharma Family Clinic", timezone="UTC", push_notification_balance=5)
    db.add(clinic)
    db.commit()
    return clinic


@pytest.fixture(scope="function")
def other_clinic(db: Session) -> Clinic:
    clinic = Clinic(name="City Care Clinic", timezone="UTC", push_notification_balance=5)
    db.add(clinic)
    db.commit()
    return clinic


@pytest.fixture(scope="function")
def patient(db: Session, clinic: Clinic) -> Patient:
    """Patient with a push token and an active app install."""
    patient = _add_patient(db, clinic, "Asha Verma")
    db.commit()
    return patient


@pytest.fixture(scope="function")
def patient_without_token(db: Session, clinic: Clinic) -> Patient:
    patient = _add_patient(db, clinic, "Ravi Kumar", token=False, app_installed=False)
    db.commit()
    return patient


@pytest.fixture(scope="function")
def patient_without_app(db: Session, clinic: Clinic) -> Patient:
    patient = _add_patient(db, clinic, "Meena Iyer", token=True, app_installed=False)
    db.commit()
    return patient


@pytest.fixture(scope="function")
def other_patient(db: Session, other_clinic: Clinic) -> Patient:
    patient = _add_patient(db, other_clinic, "Karan Shah")
    db.commit()
    return patient


@pytest.fixture(scope="function")
def make_notification(db: Session):
    """Insert a notification row directly, bypassing the lifecycle engine."""

    def _make(clinic: Clinic, patient: Patient, **kwargs) -> Notification:
        data = {
            "clinic_id": clinic.id,
            "patient_id": patient.id,
            "message": "Please take your evening dose",
            "type": "medicine",
            "category": "reminder",
            "delivery_method": "push",
            "status": "scheduled",
            "scheduled_date": datetime(2026, 10, 18, 9, 0),
        }
        data.update(kwargs)
        notification = Notification(**data)
        db.add(notification)
        db.commit()
        return notification

    return _make


# =============================================================================
# HTTP Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def client(session_factory) -> Generator[TestClient, None, None]:
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers_for(clinic_id) -> dict:
    token = create_access_token({"sub": "staff@clinic.test", "clinic_id": clinic_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def auth_headers(clinic: Clinic) -> dict:
    return auth_headers_for(clinic.id)


@pytest.fixture(scope="function")
def other_auth_headers(other_clinic: Clinic) -> dict:
    return auth_headers_for(other_clinic.id)


@pytest.fixture(scope="function")
def headers_for():
    """Mint bearer headers for an arbitrary clinic id."""
    return auth_headers_for
