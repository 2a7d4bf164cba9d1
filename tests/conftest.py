"""
Pytest configuration and fixtures.

Tests run against an in-memory SQLite database, so no MySQL server is needed.
"""

from __future__ import annotations

import json
import os
import uuid
from datetime import datetime, timezone

import pytest

TEST_TOKEN_KEY = "test-token-signing-key"
TEST_WEBHOOK_SECRET = "whsec_MfKQ9r8GKYqrTwjUPD8ILPZIo2LaLaSw"

# Must be in place before core.config is first imported
os.environ["DB_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["AUTH_TOKEN_KEY"] = TEST_TOKEN_KEY
os.environ["AUTH_TOKEN_ALGORITHM"] = "HS256"
os.environ["CLERK_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from svix.webhooks import Webhook  # noqa: E402

from core.db.base import Base  # noqa: E402
from core.db.dependencies import get_db  # noqa: E402
from models import Tier, TierName, User  # noqa: E402
from api.v1.workspace.tiers import seed_default_tiers  # noqa: E402


@pytest.fixture
def db() -> Session:
    """Fresh in-memory database with the reference tiers seeded."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    seed_default_tiers(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def app():
    from main import app

    return app


@pytest.fixture
def client(app, db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db: Session):
    """Factory inserting a user on the given tier."""

    def _make_user(user_id: str, tier: TierName = TierName.FREE, **fields) -> User:
        tier_row = db.query(Tier).filter_by(name=tier).first()
        user = User(
            id=user_id,
            email=fields.pop("email", f"{user_id}@example.com"),
            first_name=fields.pop("first_name", user_id.upper()),
            last_name=fields.pop("last_name", "Tester"),
            tier_id=tier_row.id,
            **fields,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def auth_headers(app):
    """Build an Authorization header for the given user id."""

    def _headers(user_id: str) -> dict:
        token = app.state.token_manager.create_access_token(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def signed_webhook():
    """Serialize an event and sign it the way the identity provider does."""

    def _sign(event: dict) -> tuple[str, dict]:
        body = json.dumps(event)
        msg_id = f"msg_{uuid.uuid4().hex}"
        now = datetime.now(timezone.utc)
        signature = Webhook(TEST_WEBHOOK_SECRET).sign(msg_id, now, body)
        headers = {
            "svix-id": msg_id,
            "svix-timestamp": str(int(now.timestamp())),
            "svix-signature": signature,
            "content-type": "application/json",
        }
        return body, headers

    return _sign
