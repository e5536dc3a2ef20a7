"""
Shared pytest fixtures for all tests.

An in-memory SQLite database is shared by the test session and the app, and
Firebase authentication is replaced by a settable "current profile".
"""

import os
from datetime import datetime, timedelta
from typing import Generator
from unittest.mock import patch

# Must be set before medsystem.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("FUNCTIONS_SECRET", "test-functions-secret")
os.environ.setdefault("NOTIFICATION_TOKEN", "test-notification-token")
os.environ.setdefault("CLINIC_TIMEZONE", "America/Sao_Paulo")

import pytest
import redis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from medsystem import models
from medsystem.auth import get_current_profile
from medsystem.database import Base, get_db
from medsystem.main import app
from medsystem.models import AppRole, Patient, PatientStatus, PatientTask, Profile, UserRole

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
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


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


# ============================================================================
# EXTERNAL SERVICES
# ============================================================================


@pytest.fixture(autouse=True)
def no_redis():
    """Rate limiting falls back to process memory"""
    with patch(
        "medsystem.rate_limiter.get_redis_client",
        side_effect=redis.ConnectionError("redis disabled in tests"),
    ):
        yield


@pytest.fixture(autouse=True)
def reset_rate_limits():
    from medsystem import rate_limiter

    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_profile(db_session):
    counter = {"n": 0}

    def _make(role: AppRole = AppRole.USER, approved: bool = True, **kwargs) -> Profile:
        counter["n"] += 1
        n = counter["n"]
        profile = Profile(
            firebase_uid=kwargs.pop("firebase_uid", f"firebase-uid-{n}"),
            email=kwargs.pop("email", f"user{n}@clinica.com.br"),
            full_name=kwargs.pop("full_name", f"Usuário {n}"),
            approved=approved,
            **kwargs,
        )
        db_session.add(profile)
        db_session.flush()
        db_session.add(UserRole(user_id=profile.id, role=role.value))
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def admin_profile(make_profile) -> Profile:
    return make_profile(AppRole.ADMIN, full_name="Administradora")


@pytest.fixture
def user_profile(make_profile) -> Profile:
    return make_profile(AppRole.USER, full_name="Secretária")


@pytest.fixture
def make_patient(db_session, admin_profile):
    def _make(**kwargs) -> Patient:
        values = {
            "name": "Maria da Silva",
            "procedure": "Colecistectomia",
            "status": PatientStatus.AWAITING_AUTHORIZATION.value,
            "exams_checklist": [],
            "created_by": admin_profile.id,
        }
        values.update(kwargs)
        patient = Patient(**values)
        db_session.add(patient)
        db_session.commit()
        db_session.refresh(patient)
        return patient

    return _make


@pytest.fixture
def make_task(db_session):
    def _make(patient: Patient, due_date: datetime, completed: bool = False, **kwargs):
        task = PatientTask(
            patient_id=patient.id,
            title=kwargs.pop("title", "Cobrar exame"),
            task_type=kwargs.pop("task_type", models.TaskType.EXAM_FOLLOWUP.value),
            due_date=due_date,
            completed=completed,
            **kwargs,
        )
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _make


@pytest.fixture
def utc_noon() -> datetime:
    """A fixed naive-UTC instant: 2025-03-10 12:00 UTC is 09:00 in São Paulo"""
    return datetime(2025, 3, 10, 12, 0)


@pytest.fixture
def one_day() -> timedelta:
    return timedelta(days=1)


# ============================================================================
# API CLIENT
# ============================================================================


class CurrentProfile:
    profile = None


@pytest.fixture
def current(admin_profile) -> CurrentProfile:
    """Who the API thinks is signed in; tests reassign .profile"""
    holder = CurrentProfile()
    holder.profile = admin_profile
    return holder


@pytest.fixture
def client(db_session, session_factory, current) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    async def override_current_profile():
        return current.profile

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_profile] = override_current_profile

    # Background pushes open their own sessions
    with patch("medsystem.domain.notifications.dispatch.SessionLocal", session_factory):
        yield TestClient(app)

    app.dependency_overrides.clear()
