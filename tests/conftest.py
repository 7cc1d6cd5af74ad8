"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
an in-memory SQLite database per test, a session bound to it, a fixed
clock and a few canned answer sets.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from progress_core.assessment.outcomes import AnswerOutcome  # noqa: E402
from progress_core.core.clock import FixedClock  # noqa: E402
from progress_core.db.database import init_db  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (session flows against SQLite)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Session bound to the test database; rolled back at teardown."""
    session = Session(bind=engine, autoflush=False)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock():
    """Clock frozen at noon, 10 March 2024, in the configured zone."""
    return FixedClock(datetime(2024, 3, 10, 12, 0))


@pytest.fixture
def exam_outcomes():
    """Five exam answers: 3 easy correct, 1 medium correct, 1 hard wrong."""
    return [
        AnswerOutcome("q1", "easy", True, "A"),
        AnswerOutcome("q2", "easy", True, "B"),
        AnswerOutcome("q3", "easy", True, "C"),
        AnswerOutcome("q4", "medium", True, "D"),
        AnswerOutcome("q5", "hard", False, "E"),
    ]


@pytest.fixture
def diagnostic_outcomes():
    """Fifteen diagnostic answers, 12 of them correct."""
    tiers = ["easy"] * 5 + ["medium"] * 5 + ["hard"] * 5
    return [
        AnswerOutcome(f"d{i}", tier, i not in (5, 10, 15), "X")
        for i, tier in enumerate(tiers, start=1)
    ]
