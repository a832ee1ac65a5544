"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fincognia_gateway.api.main import create_app
from fincognia_gateway.infrastructure.database.models import Base
from fincognia_gateway.infrastructure.database.session import get_db
from fincognia_gateway.domain.models import Transaction
from fincognia_gateway.utils.date_utils import to_epoch_millis


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user_test"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    return {"X-User-ID": USER_ID}


@pytest.fixture
def now() -> datetime:
    """Fixed local clock, mid-morning so day buckets are unambiguous"""
    return datetime(2024, 7, 15, 10, 0, 0)


def make_transaction(when: datetime, amount: float, merchant: str = None, user_id: str = USER_ID, **kwargs) -> Transaction:
    return Transaction(
        user_id=user_id,
        timestamp=to_epoch_millis(when),
        amount=amount,
        type="credit" if amount > 0 else "debit",
        merchant=merchant,
        **kwargs,
    )


@pytest.fixture
def make_txn():
    """Factory for transactions whose type follows the amount sign"""
    return make_transaction


@pytest.fixture
def sample_transactions(now: datetime) -> list[Transaction]:
    """Sample history: monthly salary, monthly rent, weekly groceries"""
    transactions = []

    # Simulate monthly salary and rent
    for month in range(1, 4):
        transactions.append(make_transaction(datetime(2024, month + 3, 1, 9), 50000.0, "Acme Corp", category="income"))
        transactions.append(make_transaction(datetime(2024, month + 3, 5, 9), -15000.0, "Landlord", category="bills"))

    # Regular spending
    for week in range(12):
        when = now - timedelta(days=7 * week + 1)
        transactions.append(make_transaction(when, -2500.0, "BigBasket", category="food"))

    return transactions
