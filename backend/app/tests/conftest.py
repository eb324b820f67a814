import os
import tempfile

# Settings are read at import time, so the test database must be chosen first.
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(
    tempfile.gettempdir(), f"jewelry_pricing_test_{os.getpid()}.db"
)
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["GOLDAPI_KEY"] = ""
os.environ["METALPRICEAPI_KEY"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.database import SessionLocal, engine
from app.core.security import create_token, hash_password
from app.main import app
from app.models import Base
from app.models.user import User
from app.services.rate_provider import record_rates


TEST_RATES = {
    "22K": Decimal("6000"),
    "18K": Decimal("4900"),
    "14K": Decimal("3800"),
    "Silver": Decimal("85"),
    "Platinum": Decimal("3200"),
}


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def rates(db):
    record_rates(db, TEST_RATES, source="Test")
    return TEST_RATES


def _headers_for(db, email: str, role: str) -> dict:
    user = User(email=email, hashed_password=hash_password("secret123"), role=role)
    db.add(user)
    db.commit()
    token = create_token(str(user.id), settings.access_token_expire_minutes, token_type="access", role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(db):
    return _headers_for(db, "owner@shop.in", "owner")


@pytest.fixture
def staff_headers(db):
    return _headers_for(db, "staff@shop.in", "staff")
