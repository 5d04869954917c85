# pitchgenie/conftest.py
import os
import tempfile
from pathlib import Path

import pytest

# Configure the environment before any pitchgenie module reads settings
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="pitchgenie-tests-"))
os.environ["ENV"] = "test"
os.environ["SKIP_ENV_VALIDATION"] = "1"
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'test.db'}"
os.environ["AUTH_SECRET"] = "test-secret-for-session-tokens-0123456789"
for _key in ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "OPENROUTER_API_KEY", "EMAIL_SERVER_HOST"):
    os.environ.pop(_key, None)


@pytest.fixture(scope="function", autouse=True)
def reset_db():
    """Fresh tables for every test."""
    from pitchgenie.core.database import reset_database

    reset_database()
    yield


@pytest.fixture(scope="function", autouse=True)
def clear_dependency_overrides():
    yield
    from pitchgenie.main import app

    app.dependency_overrides.clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from pitchgenie.main import app

    return TestClient(app)


@pytest.fixture
def make_user():
    """Create a user with a password and return (user, auth headers)."""
    from pitchgenie.core.security import create_session_token
    from pitchgenie.features.users.service import create_user

    def _make(email: str = "founder@example.com", password: str = "s3cret-pass", name: str = "Founder"):
        user = create_user(email, password, name)
        token, _ = create_session_token(user.session_view())
        return user, {"Authorization": f"Bearer {token}"}

    return _make
