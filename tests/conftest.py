"""
Shared test fixtures.
"""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.db.base import Base
import src.models  # noqa: F401  registers tables on Base.metadata
from src.services.messaging import NotificationService, OTPService

TEST_OTP_SECRET = "test-otp-secret"


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create test database session."""
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 15, 9, 30, 0))


@pytest.fixture
def notifier():
    """Delivery gateway double: both channels succeed unless a test says otherwise."""
    mock = MagicMock(spec=NotificationService)
    mock.send_email_otp = AsyncMock(return_value=True)
    mock.send_sms_otp = AsyncMock(return_value=True)
    mock.send_welcome_email = AsyncMock(return_value=True)
    mock.send_thank_you_email = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def otp_service(db_session, notifier, clock):
    return OTPService(db=db_session, notifier=notifier, otp_secret=TEST_OTP_SECRET, clock=clock)

