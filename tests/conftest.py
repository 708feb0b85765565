"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from pocket_ledger.api.main import create_app
from pocket_ledger.domain.currency import RateTable
from pocket_ledger.domain.models import CurrencyCode, RateQuote
from pocket_ledger.infrastructure.database.models import Account, Base, Category
from pocket_ledger.infrastructure.database.session import get_db
from pocket_ledger.services.ledger import LedgerService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
def ledger(db: Session) -> LedgerService:
    return LedgerService(db)


@pytest.fixture
def account(ledger: LedgerService, db: Session) -> Account:
    """Chequing account opened with $1000.00"""
    account = ledger.create_account(user_id=1, name="Chequing", currency="CAD", initial_balance=1000.0)
    db.commit()
    return account


@pytest.fixture
def groceries(ledger: LedgerService, db: Session) -> Category:
    category = ledger.create_category(user_id=1, name="Groceries")
    db.commit()
    return category


@pytest.fixture
def household(ledger: LedgerService, db: Session) -> Category:
    category = ledger.create_category(user_id=1, name="Household")
    db.commit()
    return category


def make_quote(from_code: str, to_code: str, rate: float, rate_date: datetime, rate_id: int = 0) -> RateQuote:
    return RateQuote(
        from_currency=CurrencyCode.parse(from_code),
        to_currency=CurrencyCode.parse(to_code),
        rate=rate,
        rate_date=rate_date,
        source="manual",
        rate_id=rate_id,
    )


@pytest.fixture
def usd_hub_table() -> RateTable:
    """USD->CAD 1.35 and USD->EUR 0.90, nothing between CAD and EUR"""
    when = datetime(2024, 6, 1, 12, 0)
    return RateTable([
        make_quote("USD", "CAD", 1.35, when, rate_id=1),
        make_quote("USD", "EUR", 0.90, when, rate_id=2),
    ])


@pytest.fixture
def quote():
    """Factory for RateQuote values"""
    return make_quote
