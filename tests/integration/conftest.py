"""
Integration test configuration
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from src.app.config import Settings
from src.app.dependencies import get_app_settings, get_notifier
from src.app.main import app
from src.db.base import get_db


@pytest.fixture
def test_settings():
    return Settings(ENVIRONMENT="test", OTP_SECRET="integration-secret")


@pytest.fixture
def client(engine, notifier, test_settings):
    """FastAPI test client with dependency overrides."""
    TestingSession = sessionmaker(bind=engine, autoflush=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_app_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
