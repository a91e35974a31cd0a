"""Pytest configuration and fixtures."""

import os
import time
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient
from jwt.algorithms import ECAlgorithm

# ES256 key pair standing in for the project's JWT signing key
TEST_PRIVATE_KEY = ec.generate_private_key(ec.SECP256R1())
TEST_PUBLIC_JWK = ECAlgorithm.to_jwk(TEST_PRIVATE_KEY.public_key())

TEST_USER_ID = "550e8400-e29b-41d4-a716-446655440000"

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("AUTH_REDIRECT_URL", "http://localhost:5173")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_SIGNING_KEY_JWK", TEST_PUBLIC_JWK)
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("MEDIA_CLOUD_NAME", "test-cloud")
os.environ.setdefault("MEDIA_IMAGE_PRESET", "test-image-preset")
os.environ.setdefault("MEDIA_AUDIO_PRESET", "test-audio-preset")


def create_test_token(
    sub: str = TEST_USER_ID,
    email: str | None = "test@example.com",
    display_name: str | None = "Test User",
    exp_offset: int = 3600,
    signed_in_offset: int = 0,
    audience: str = "authenticated",
) -> str:
    """Create an ES256 access token shaped like a Supabase one.

    Args:
        sub: Subject (user ID).
        email: User email.
        display_name: Stored in user_metadata.
        exp_offset: Seconds from now for expiration (negative for expired).
        signed_in_offset: Seconds ago the password sign-in happened.
        audience: Audience claim.

    Returns:
        str: Encoded JWT token.
    """
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": sub,
        "email": email,
        "role": "authenticated",
        "exp": now + exp_offset,
        "iat": now,
        "aud": audience,
        "iss": "https://test-project.supabase.co/auth/v1",
        "user_metadata": {"display_name": display_name} if display_name else {},
        "amr": [{"method": "password", "timestamp": now - signed_in_offset}],
    }
    return jwt.encode(payload, TEST_PRIVATE_KEY, algorithm="ES256")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory for signed test access tokens."""
    return create_test_token


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for the default test user."""
    return {"Authorization": f"Bearer {create_test_token()}"}


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
