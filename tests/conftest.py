import os

# Set testing environment before the app is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from smartcare.main import app
from smartcare.core.database import get_db, Base, redis_client
from smartcare.core.security import UserRole, get_password_hash
from smartcare.core.storage import LocalFileStorage, get_storage
from smartcare.models.user import User

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "TestPassword123"

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    redis_client.flushall()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def storage(tmp_path):
    local = LocalFileStorage(str(tmp_path / "uploads"), "/files")
    app.dependency_overrides[get_storage] = lambda: local
    yield local
    app.dependency_overrides.pop(get_storage, None)

@pytest.fixture
def client():
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def make_user(client, db_session):
    """Create a user directly in the database and log them in.

    Returns ``(user_id, auth_headers)``.
    """
    def _make(email, role, approved=True, profile_completed=True, full_name=None, blocked=False):
        user = User(
            email=email,
            password_hash=get_password_hash(PASSWORD),
            role=role,
            full_name=full_name or email.split("@")[0].title(),
            profile_completed=profile_completed,
            approved=approved,
            blocked=False,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)

        response = client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": PASSWORD}
        )
        assert response.status_code == 200, response.text
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        if blocked:
            user.blocked = True
            db_session.commit()

        return user.id, headers

    return _make

@pytest.fixture
def patient(make_user):
    return make_user("patient@example.com", UserRole.PATIENT, full_name="Pat Patient")

@pytest.fixture
def doctor(make_user):
    return make_user("doctor@example.com", UserRole.DOCTOR, full_name="Dana Doctor")

@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", UserRole.ADMIN, full_name="Ada Admin")

@pytest.fixture
def caregiver(make_user):
    return make_user("carer@example.com", UserRole.CAREGIVER, full_name="Cary Carer")

def book(client, patient_headers, doctor_id, reason="Check-up", date="2030-01-15T10:00:00"):
    response = client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor_id, "date": date, "reason": reason},
        headers=patient_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()

def link(client, patient, caregiver):
    """Send a request as the patient and accept it as the caregiver."""
    _, patient_headers = patient
    caregiver_id, caregiver_headers = caregiver

    response = client.post(
        "/api/v1/caregivers/requests",
        json={"caregiver_id": caregiver_id},
        headers=patient_headers,
    )
    assert response.status_code == 201, response.text
    request_id = response.json()["id"]

    response = client.post(
        f"/api/v1/caregivers/requests/{request_id}/decision",
        json={"accept": True},
        headers=caregiver_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()
