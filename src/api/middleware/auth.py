"""Verification of Supabase-issued session tokens."""

from enum import Enum
from functools import lru_cache
from typing import Any
from uuid import UUID

import jwt
from jwt import PyJWK

from src.core.config import get_settings
from src.schemas.auth import TokenPayload

SIGNING_ALGORITHM = "ES256"
REQUIRED_CLAIMS = ["exp", "iat", "sub"]


class AuthErrorCode(str, Enum):
    """Authentication error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class AuthError(Exception):
    """A session token was rejected; ``code`` says why."""

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# Checked in order, so subclasses come before their bases
_JWT_FAILURES: list[tuple[type[jwt.PyJWTError], str, AuthErrorCode]] = [
    (jwt.ExpiredSignatureError, "Token has expired", AuthErrorCode.TOKEN_EXPIRED),
    (jwt.InvalidSignatureError, "Invalid token signature", AuthErrorCode.INVALID_SIGNATURE),
    (jwt.InvalidAudienceError, "Token was not issued for this application", AuthErrorCode.INVALID_TOKEN),
    (jwt.MissingRequiredClaimError, "Token missing required claim", AuthErrorCode.INVALID_TOKEN),
    (jwt.DecodeError, "Invalid token format", AuthErrorCode.INVALID_TOKEN),
]


def _to_auth_error(error: jwt.PyJWTError) -> AuthError:
    for error_type, message, code in _JWT_FAILURES:
        if isinstance(error, error_type):
            # Expiry and signature failures need no detail
            if code is AuthErrorCode.INVALID_TOKEN:
                return AuthError(f"{message}: {error}", code)
            return AuthError(message, code)
    return AuthError(f"Token validation failed: {error}", AuthErrorCode.INVALID_TOKEN)


@lru_cache
def get_signing_key() -> Any:
    """Public half of the project's signing key, parsed once from its JWK.

    Raises:
        AuthError: If the configured JWK is missing or unreadable.
    """
    jwk_json = get_settings().supabase_signing_key_jwk
    if not jwk_json:
        raise AuthError("Signing key not configured", AuthErrorCode.INVALID_TOKEN)

    try:
        return PyJWK.from_json(jwk_json).key
    except (jwt.PyJWKError, ValueError) as e:
        raise AuthError(f"Invalid signing key JWK: {e}", AuthErrorCode.INVALID_TOKEN) from e


def decode_jwt(token: str) -> TokenPayload:
    """Decode and validate a Supabase access token.

    Checks the ES256 signature, expiry, audience and the claims the session
    needs. The subject must be a UUID because it keys the profile record.

    Args:
        token: The JWT token string to decode.

    Returns:
        TokenPayload: Validated token payload.

    Raises:
        AuthError: If the token is rejected for any reason.
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            get_signing_key(),
            algorithms=[SIGNING_ALGORITHM],
            audience=get_settings().jwt_audience,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError as e:
        raise _to_auth_error(e) from e

    try:
        UUID(str(claims["sub"]))
    except ValueError as e:
        raise AuthError("Token subject is not a user id", AuthErrorCode.INVALID_TOKEN) from e

    return TokenPayload.from_claims(claims)
