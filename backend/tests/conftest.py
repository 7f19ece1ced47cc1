"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid

from app.ai.classifier import AIClassification, get_ai_classifier
from app.database import Base
from app.dependencies import get_db, get_session_factory
from app.exceptions import AIProviderError
from app.main import app
from app.models.category import Category
from app.models.transaction import Transaction
from app.services.categorization_service import CategorizationEngine
from app.services.deduplication_service import generate_transaction_hash
from app.services.rule_classifier import DEFAULT_RULES_PATH, RuleClassifier

USER_ID = "user-0001"
OTHER_USER_ID = "user-0002"


class FakeAIClassifier:
    """AIClassifier double: returns a canned result or raises."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def classify(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise AIProviderError("No canned answer")
        return self.result


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def rules():
    """The bundled rule table."""
    return RuleClassifier.from_file(DEFAULT_RULES_PATH)


@pytest.fixture
def fake_ai():
    """AI tier that answers like the Starbucks example: low-confidence Meals & Entertainment."""
    return FakeAIClassifier(result=AIClassification(Category.meals_entertainment, 0.55))


@pytest.fixture
def engine(db_session, rules, fake_ai):
    return CategorizationEngine(db_session, rules, fake_ai, review_threshold=0.75)


@pytest.fixture
def make_transaction(db_session):
    """Factory for stored, not yet categorized transactions."""
    def _make(raw_description, amount="-12.50", user_id=USER_ID, txn_date=date(2024, 3, 1), merchant_name=None):
        amount = Decimal(amount)
        txn = Transaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            hash=generate_transaction_hash(txn_date, amount, raw_description, user_id, str(uuid.uuid4())),
            date=txn_date,
            amount=amount,
            raw_description=raw_description,
            merchant_name=merchant_name,
        )
        db_session.add(txn)
        db_session.commit()
        db_session.refresh(txn)
        return txn
    return _make


@pytest.fixture(scope="function")
def client(db_session, fake_ai):
    """Create a test client with database and AI overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_session_factory():
        return sessionmaker(autocommit=False, autoflush=False, bind=db_session.get_bind())

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = override_session_factory
    app.dependency_overrides[get_ai_classifier] = lambda: fake_ai
    with TestClient(app, headers={"X-User-Id": USER_ID}) as test_client:
        yield test_client
    app.dependency_overrides.clear()
