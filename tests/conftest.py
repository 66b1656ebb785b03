"""
Pytest configuration and fixtures
"""
import json
import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment variables before importing
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-replivity-tests-only-min-32-chars"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_PROVIDER"] = "dev"
os.environ["AI_DEFAULT_MODEL"] = ""
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce log noise in tests

# Import after setting env vars
from replivity.api_server import app
from replivity.auth import create_access_token, get_password_hash
from replivity.db import Base, SessionLocal, get_db, User, Product
from replivity.db.engine import engine
from replivity.services.billing_service import BillingService
from replivity.services.email_provider import DevEmailProvider, set_email_provider
from replivity.services.settings_service import SettingsService

TEST_PASSWORD = "Replivity2024"


@pytest.fixture(scope="session")
def test_engine():
    """In-memory SQLite engine shared with the application"""
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Session:
    """Fresh tables and a session for each test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = SessionLocal()

    # Override get_db dependency
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db

    yield session

    session.rollback()
    session.close()
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(db_session):
    """Create test client"""
    return TestClient(app)


@pytest.fixture(scope="function", autouse=True)
def email_outbox():
    """Capture outgoing emails"""
    provider = DevEmailProvider()
    set_email_provider(provider)
    yield provider.sent
    set_email_provider(None)


@pytest.fixture
def make_user(db_session):
    """Factory for users with TEST_PASSWORD"""
    def _make_user(email: str, is_admin: bool = False, **fields) -> User:
        user = User(
            email=email,
            hashed_password=get_password_hash(TEST_PASSWORD),
            full_name=fields.pop("full_name", email.split("@")[0].title()),
            is_active=fields.pop("is_active", True),
            is_admin=is_admin,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def test_user(make_user):
    return make_user("test@example.com")


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@example.com", is_admin=True)


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user):
    """Get authentication headers for testing"""
    return headers_for(test_user)


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def product(db_session):
    """A paid plan with a small generation limit"""
    product = Product(
        name="Pro",
        description="Pro plan",
        price=Decimal("29.99"),
        limit=3,
        type="subscription",
        mode="monthly",
        status="active",
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def active_plan(db_session, test_user, product):
    """test_user subscribed to `product` with fresh usage"""
    return BillingService(db_session).assign_plan(test_user.id, product.id)


@pytest.fixture
def ai_settings(db_session):
    """AI settings with one enabled model and a key"""
    return SettingsService(db_session).update_ai_settings(
        api_key="sk-test-key-123456",
        enabled_models=["gpt-4o-mini"],
        system_prompt="Always be kind.",
    )


ANALYSIS_JSON = {
    "sentiment": "positive",
    "topics": ["product launch", "startups"],
    "engagement_potential": "high",
    "content_type": "announcement",
    "target_audience": "founders",
    "key_points": ["new feature shipped"],
    "cultural_context": "tech twitter",
    "trending_elements": ["#buildinpublic"],
}

ENHANCEMENT_JSON = {
    "enhanced_text": "Congrats on the launch! The new feature looks great.",
    "confidence_score": 0.92,
    "improvements_made": ["tightened wording"],
}


def completion_response(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


class MockCompletion:
    """Stand-in for litellm.completion that replays queued contents"""

    def __init__(self, contents):
        self.contents = list(contents)
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if not self.contents:
            raise AssertionError("Unexpected LLM call")
        content = self.contents.pop(0)
        if isinstance(content, Exception):
            raise content
        return completion_response(content)


@pytest.fixture
def mock_llm(monkeypatch):
    """
    Mock litellm calls to avoid external dependencies

    Default replies run the full analyze -> generate -> enhance chain; tests may
    replace `mock.contents` before calling the endpoint.
    """
    import litellm

    mock = MockCompletion([
        json.dumps(ANALYSIS_JSON),
        "Congrats on the launch!",
        json.dumps(ENHANCEMENT_JSON),
    ])
    monkeypatch.setattr(litellm, "completion", mock)
    return mock


@pytest.fixture
def make_headers():
    """Factory for bearer headers of any user"""
    return headers_for


@pytest.fixture
def user_password():
    """Plain-text password of users created by make_user"""
    return TEST_PASSWORD
