"""
Pytest fixtures for Applyo tests.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from applyo
# so that Settings is configured correctly when first loaded.
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["EXA_API_KEY"] = "test-exa-key"
os.environ["ZEROBOUNCE_API_KEY"] = "test-zerobounce-key"
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest

from applyo.database import DatabaseManager, set_db_manager


@pytest.fixture(autouse=True)
def db():
    """Fresh in-memory database installed as the process-wide manager."""
    manager = DatabaseManager("sqlite://")
    manager.init_db()
    set_db_manager(manager)
    yield manager
    set_db_manager(None)
    manager.close()


@pytest.fixture
def session(db):
    """Plain session; tests commit or flush as needed."""
    session = db.get_session()
    yield session
    session.rollback()
    session.close()
