"""Unit tests for JWT decoding and authentication utilities."""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.schemas.auth import TokenPayload


class TestDecodeJWT:
    """Tests for decode_jwt function."""

    def test_decode_jwt_with_valid_token(self, make_token: Callable[..., str]) -> None:
        """Test decode_jwt successfully decodes a valid token."""
        payload = decode_jwt(make_token())

        assert payload.sub == "550e8400-e29b-41d4-a716-446655440000"
        assert payload.email == "test@example.com"
        assert payload.role == "authenticated"
        assert payload.user_metadata == {"display_name": "Test User"}

    def test_decode_jwt_with_expired_token(self, make_token: Callable[..., str]) -> None:
        """Test decode_jwt raises AuthError for expired token."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(make_token(exp_offset=-3600))

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED
        assert "expired" in exc_info.value.message.lower()

    def test_decode_jwt_with_invalid_signature(self) -> None:
        """Test decode_jwt rejects a token signed with another key."""
        other_key = ec.generate_private_key(ec.SECP256R1())
        now = int(time.time())
        token = jwt.encode(
            {"sub": "550e8400-e29b-41d4-a716-446655440000", "exp": now + 3600, "iat": now, "aud": "authenticated"},
            other_key,
            algorithm="ES256",
        )

        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token)

        assert exc_info.value.code == AuthErrorCode.INVALID_SIGNATURE

    def test_decode_jwt_with_wrong_audience(self, make_token: Callable[..., str]) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(make_token(audience="anon"))

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    def test_decode_jwt_with_malformed_token(self) -> None:
        """Test decode_jwt raises AuthError for garbage input."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt("not-a-jwt")

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN


class TestTokenPayload:
    """Tests for TokenPayload conversions."""

    def test_authenticated_at_uses_latest_amr_timestamp(self) -> None:
        payload = TokenPayload(
            sub="550e8400-e29b-41d4-a716-446655440000",
            exp=2_000_000_000,
            iat=1_700_000_500,
            amr=[
                {"method": "password", "timestamp": 1_700_000_000},
                {"method": "oauth", "timestamp": 1_700_000_100},
            ],
        )

        assert payload.authenticated_at == datetime.fromtimestamp(1_700_000_100, tz=timezone.utc)

    def test_authenticated_at_falls_back_to_iat(self) -> None:
        payload = TokenPayload(sub="550e8400-e29b-41d4-a716-446655440000", exp=2_000_000_000, iat=1_700_000_500)

        assert payload.authenticated_at == datetime.fromtimestamp(1_700_000_500, tz=timezone.utc)

    def test_to_user_context_reads_oauth_full_name(self) -> None:
        """Test that providers' full_name is used when no display_name is set."""
        payload = TokenPayload(
            sub="550e8400-e29b-41d4-a716-446655440000",
            email="octo@example.com",
            exp=2_000_000_000,
            iat=1_700_000_500,
            user_metadata={"full_name": "Octo Cat"},
        )

        user = payload.to_user_context(access_token="raw-token")

        assert user.user_id == UUID("550e8400-e29b-41d4-a716-446655440000")
        assert user.display_name == "Octo Cat"
        assert user.access_token == "raw-token"
        assert "access_token" not in user.model_dump()

    def test_greeting_name_falls_back_to_email(self) -> None:
        payload = TokenPayload(
            sub="550e8400-e29b-41d4-a716-446655440000",
            email="plain@example.com",
            exp=2_000_000_000,
            iat=1_700_000_500,
        )

        assert payload.to_user_context().greeting_name == "plain@example.com"


class TestTokenSubject:
    """Tokens whose subject cannot key a profile record are rejected."""

    def test_non_uuid_subject(self, make_token: Callable[..., str]) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(make_token(sub="service-account"))

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN
        assert exc_info.value.message == "Token subject is not a user id"

    def test_from_claims_ignores_extra_claims(self) -> None:
        payload = TokenPayload.from_claims(
            {
                "sub": "550e8400-e29b-41d4-a716-446655440000",
                "exp": 2_000_000_000,
                "iat": 1_700_000_500,
                "session_id": "abc",
                "user_metadata": None,
            }
        )

        assert payload.user_metadata == {}
        assert payload.amr == []
