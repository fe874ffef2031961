"""
Shared fixtures: in-memory SQLite database, TestClient, and user/token factories.

The environment is pinned before mcan_api is imported so that settings (and the
engine built from them) never see a developer .env pointing at Postgres.
"""
import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["SUPER_ADMIN_SEED_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from mcan_api.config import get_settings  # noqa: E402
from mcan_api.database import Base, SessionLocal, engine  # noqa: E402
from mcan_api.main import app  # noqa: E402
from mcan_api.models.user import User, UserRole  # noqa: E402
from mcan_api.services import users as user_store  # noqa: E402
from mcan_api.services.auth import create_access_token  # noqa: E402

API = get_settings().api_prefix
DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    # No context manager: startup (create_all + seed) is handled by the fixtures above
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Factory: make_user(role=UserRole.MEMBER, **fields) -> committed User."""
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.MEMBER, **fields) -> User:
        counter["n"] += 1
        fields.setdefault("email", f"{role.value.lower()}{counter['n']}@test.mcan.demo")
        fields.setdefault("password", DEFAULT_PASSWORD)
        fields.setdefault("full_name", f"Test {role.value.title()} {counter['n']}")
        user = user_store.create_user(db, role=role, **fields)
        db.commit()
        db.refresh(user)
        return user

    return _make


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for(make_user):
    """Factory: headers_for(role) -> (user, Authorization headers) for a new user in that role."""

    def _headers(role: UserRole = UserRole.MEMBER, **fields):
        user = make_user(role, **fields)
        return user, auth_headers(user)

    return _headers
