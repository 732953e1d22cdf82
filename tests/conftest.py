"""
Shared pytest fixtures.

Every test gets its own SQLite database file under ``tmp_path`` and tokens
signed with a test-only shared secret.
"""

import pytest
from typing import Callable, Dict
from fastapi.testclient import TestClient

from api.src.config import Settings
from api.src.main import create_app
from tests.tokens import AuthConfig, create_access_token


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite database file private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    """Settings for the app under test."""
    return Settings(
        _env_file=None,
        environment="production",
        database_url=database_url,
        auth_secret_key=AuthConfig.SECRET_KEY,
        auth_issuer=AuthConfig.ISSUER,
        auth_audience=AuthConfig.AUDIENCE,
        auth_algorithms=[AuthConfig.ALGORITHM],
        cors_enabled=False,
        log_level="WARNING",
        log_format="text",
    )


@pytest.fixture
def app(settings):
    """FastAPI app under test."""
    return create_app(settings)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Factory for signed bearer tokens."""
    return create_access_token


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Authorization header with a valid token."""
    return {"Authorization": f"Bearer {create_access_token()}"}
