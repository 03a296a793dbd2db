"""
Pytest configuration and shared fixtures for MomCare API tests.

This module provides:
- Test database setup (SQLite in-memory)
- FastAPI TestClient configuration
- Authentication fixtures (test users, tokens)
- Sample records (appointments, immunizations, community posts)
"""

import pytest
import os
import sys
import tempfile
from datetime import datetime, date, timedelta
from typing import Generator

# =============================================================================
# TEST ENVIRONMENT BEFORE ANY IMPORTS
# =============================================================================
# main.py creates tables on the configured engine at import time
os.environ.setdefault(
    "DATABASE_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "momcare_test.db")
)
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add backend directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from database import (
    Base, User, AncAppointment, Immunization, CommunityPost, CommunityComment
)
from auth import get_password_hash, create_access_token


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_db(test_engine) -> Generator[Session, None, None]:
    """Create a test database session with automatic rollback."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def override_get_db(test_db):
    """Override the get_db dependency to use test database."""
    def _override_get_db():
        try:
            yield test_db
        finally:
            pass
    return _override_get_db


# =============================================================================
# APPLICATION FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def app_instance():
    """Create the FastAPI app instance once per test session."""
    from main import app as fastapi_app
    return fastapi_app


@pytest.fixture(scope="function")
def app(app_instance, override_get_db):
    """Configure the app with test database for each test."""
    from database import get_db

    app_instance.dependency_overrides[get_db] = override_get_db
    yield app_instance
    app_instance.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a TestClient for making requests to the app."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


# =============================================================================
# USER FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def test_user_data():
    """Test user data for registration."""
    return {
        "email": "amara@example.com",
        "password": "TestPassword123!",
        "first_name": "Amara",
        "last_name": "Okafor",
    }


@pytest.fixture(scope="function")
def test_user(test_db, test_user_data) -> User:
    """Create a test user, 20 weeks pregnant."""
    user = User(
        email=test_user_data["email"],
        hashed_password=get_password_hash(test_user_data["password"]),
        first_name=test_user_data["first_name"],
        last_name=test_user_data["last_name"],
        pregnancy_weeks=20,
        is_active=True,
        created_at=datetime.utcnow()
    )
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture(scope="function")
def other_user(test_db) -> User:
    """A second mother, used to check records are not shared."""
    user = User(
        email="grace@example.com",
        hashed_password=get_password_hash("OtherPass123!"),
        first_name="Grace",
        last_name="Mensah",
        is_postpartum=True,
        is_active=True,
        created_at=datetime.utcnow()
    )
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture(scope="function")
def inactive_user(test_db) -> User:
    """Create an inactive user for testing inactive user handling."""
    user = User(
        email="inactive@example.com",
        hashed_password=get_password_hash("InactivePass123!"),
        first_name="Inactive",
        is_active=False,
        created_at=datetime.utcnow()
    )
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


# =============================================================================
# AUTHENTICATION FIXTURES
# =============================================================================

def _token_for(user: User, minutes: int = 30) -> str:
    return create_access_token(
        data={"sub": user.id},
        expires_delta=timedelta(minutes=minutes)
    )


@pytest.fixture(scope="function")
def user_token(test_user) -> str:
    """Generate a valid JWT token for the test user."""
    return _token_for(test_user)


@pytest.fixture(scope="function")
def expired_token(test_user) -> str:
    """Generate an expired JWT token for testing expiration."""
    return _token_for(test_user, minutes=-10)


@pytest.fixture(scope="function")
def auth_headers(user_token) -> dict:
    """Get authorization headers for the test user."""
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture(scope="function")
def other_auth_headers(other_user) -> dict:
    return {"Authorization": f"Bearer {_token_for(other_user)}"}


@pytest.fixture(scope="function")
def inactive_auth_headers(inactive_user) -> dict:
    return {"Authorization": f"Bearer {_token_for(inactive_user)}"}


# =============================================================================
# RECORD FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def sample_appointment(test_db, test_user) -> AncAppointment:
    """A scheduled routine checkup one week from now."""
    appointment = AncAppointment(
        user_id=test_user.id,
        doctor_name="Dr. Adeyemi",
        appointment_date=datetime.utcnow() + timedelta(days=7),
        appointment_type="routine",
        location="City Maternity Clinic",
        status="scheduled",
    )
    test_db.add(appointment)
    test_db.commit()
    test_db.refresh(appointment)
    return appointment


@pytest.fixture(scope="function")
def sample_immunizations(test_db, test_user) -> list:
    """One completed, one overdue (pending in the past) and one upcoming shot."""
    today = date.today()
    immunizations = [
        Immunization(
            user_id=test_user.id,
            child_name="Baby Ada",
            vaccine_name="BCG",
            scheduled_date=today - timedelta(days=60),
            completed_date=today - timedelta(days=60),
            status="completed",
        ),
        Immunization(
            user_id=test_user.id,
            child_name="Baby Ada",
            vaccine_name="OPV 1",
            scheduled_date=today - timedelta(days=3),
            status="pending",
        ),
        Immunization(
            user_id=test_user.id,
            child_name="Baby Ada",
            vaccine_name="Pentavalent 1",
            scheduled_date=today + timedelta(days=14),
            status="pending",
        ),
    ]
    test_db.add_all(immunizations)
    test_db.commit()
    for immunization in immunizations:
        test_db.refresh(immunization)
    return immunizations


@pytest.fixture(scope="function")
def sample_post(test_db, other_user) -> CommunityPost:
    """A community post written by the other user."""
    post = CommunityPost(
        user_id=other_user.id,
        title="Sleeping positions",
        content="What helped you sleep in the third trimester?",
        category="pregnancy",
    )
    test_db.add(post)
    test_db.commit()
    test_db.refresh(post)
    return post


@pytest.fixture(scope="function")
def sample_comment(test_db, sample_post, test_user) -> CommunityComment:
    comment = CommunityComment(
        post_id=sample_post.id,
        user_id=test_user.id,
        content="A pillow between the knees helped me a lot.",
    )
    test_db.add(comment)
    test_db.commit()
    test_db.refresh(comment)
    return comment
