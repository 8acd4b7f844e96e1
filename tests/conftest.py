# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import os

# Safety check to prevent tests from running against production database.
# Settings are read at import time, so the environment is prepared first.
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-access-secret")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["VAPID_PUBLIC_KEY"] = ""
os.environ["VAPID_PRIVATE_KEY"] = ""
os.environ["DISPATCH_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from volunteerhub.app import app
from volunteerhub.db import models
from volunteerhub.db.database import Base, build_engine, get_db
from volunteerhub.services.realtime import publisher
from tests.test_helpers import create_user

# Create test database engine and session
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(name="db_session", scope="function")
def db_session_fixture():
    """
    Creates a new database session for each test, with all tables created.
    """
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after the test to ensure a clean slate
        Base.metadata.drop_all(bind=test_engine)
        publisher.clear()


@pytest.fixture(name="dispatch_mock")
def dispatch_mock_fixture(mocker):
    """
    Keeps the outbox drain from running after responses; tests assert that
    it was scheduled instead.
    """
    return mocker.patch("volunteerhub.events.notification_handlers.dispatch_pending_notifications")


@pytest.fixture(name="client")
def client_fixture(db_session: Session, dispatch_mock):
    """
    Provides a FastAPI TestClient that overrides the get_db dependency
    to use the test database session.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db_session: Session):
    return create_user(db_session, "admin@example.com", models.Role.ADMIN, "Ada", "Admin")


@pytest.fixture
def organizer(db_session: Session):
    return create_user(db_session, "organizer@example.com", models.Role.ORGANIZER, "Olivia", "Organizer")


@pytest.fixture
def volunteer(db_session: Session):
    return create_user(db_session, "volunteer@example.com", models.Role.VOLUNTEER, "Vu", "Nguyen")


@pytest.fixture
def other_volunteer(db_session: Session):
    return create_user(db_session, "second.volunteer@example.com", models.Role.VOLUNTEER, "Lan", "Tran")
