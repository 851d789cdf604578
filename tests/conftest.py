"""
shared fixtures: an in-memory sqlite database per test.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bp_tracker.config import init_db


@pytest.fixture
def session_factory():
    """
    create a fresh in-memory database with the readings table.

    yields:
        sessionmaker bound to the test engine
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def test_session(session_factory):
    """
    create a test database session.

    yields:
        sqlalchemy session for testing
    """
    session = session_factory()
    yield session
    session.close()
