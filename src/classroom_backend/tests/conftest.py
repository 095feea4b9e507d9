"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure classroom_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from classroom_backend.model import Base
from classroom_backend.services.enrollment_workflow import EnrollmentWorkflow
from classroom_backend.settings import settings
from classroom_backend.tests.fixtures import build_school


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def test_db(engine) -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def academic_settings(monkeypatch):
    """Pin workflow settings so tests do not depend on the environment."""
    monkeypatch.setattr(settings, "AUTO_ENROLL_ON_APPROVAL", True)
    monkeypatch.setattr(settings, "DEFAULT_ACADEMIC_YEAR", "2025")
    monkeypatch.setattr(settings, "DEFAULT_TERM", "Term 1")


@pytest.fixture
def workflow(test_db) -> EnrollmentWorkflow:
    return EnrollmentWorkflow(test_db)


@pytest.fixture
def school(test_db):
    """A small school: two classes, three subjects, an admin, two teachers and two students."""
    return build_school(test_db)
