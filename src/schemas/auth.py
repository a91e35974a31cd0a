"""Authentication schemas for JWT tokens, user context and credential flows."""

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Federated sign-in providers offered on the login and register pages
OAuthProvider = Literal["google", "github"]


class UserContext(BaseModel):
    """Authenticated user context extracted from JWT token.

    This is the Session of the profile workflow: a transient reference to
    the identity provider's principal for the lifetime of one request.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    display_name: str | None = Field(default=None, description="Display name set at registration or by the OAuth provider")
    role: str | None = Field(default=None, description="User's role (e.g., 'authenticated')")
    authenticated_at: datetime | None = Field(default=None, description="When the user last signed in")
    access_token: str | None = Field(default=None, description="Raw access token the context was built from", exclude=True)

    @property
    def greeting_name(self) -> str:
        """Name used in the welcome message."""
        return self.display_name or self.email or ""


class TokenPayload(BaseModel):
    """JWT token payload structure for Supabase tokens."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's UUID")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")
    aud: str | None = Field(default=None, description="Audience - intended recipient")
    iss: str | None = Field(default=None, description="Issuer - token issuer URL")
    user_metadata: dict[str, Any] = Field(default_factory=dict, description="Profile metadata stored on the identity")
    amr: list[dict[str, Any]] = Field(default_factory=list, description="Authentication methods with their timestamps")

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "TokenPayload":
        """Build from decoded JWT claims; unrelated claims are dropped."""
        return cls(
            sub=str(claims["sub"]),
            email=claims.get("email"),
            role=claims.get("role"),
            exp=claims["exp"],
            iat=claims["iat"],
            aud=claims.get("aud"),
            iss=claims.get("iss"),
            user_metadata=claims.get("user_metadata") or {},
            amr=claims.get("amr") or [],
        )

    @property
    def expiration_datetime(self) -> datetime:
        """Get expiration as datetime object."""
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    @property
    def authenticated_at(self) -> datetime:
        """Time of the most recent interactive sign-in.

        Refreshed tokens keep the original ``amr`` timestamps, so ``iat``
        is only used when the claim is missing.
        """
        timestamps = [entry["timestamp"] for entry in self.amr if isinstance(entry.get("timestamp"), int)]
        return datetime.fromtimestamp(max(timestamps) if timestamps else self.iat, tz=timezone.utc)

    def to_user_context(self, access_token: str | None = None) -> UserContext:
        """Convert token payload to UserContext.

        Args:
            access_token: The raw token, kept for provider calls such as sign-out.

        Returns:
            UserContext: User context derived from token claims.
        """
        metadata = self.user_metadata
        return UserContext(
            user_id=UUID(self.sub),
            email=self.email,
            display_name=metadata.get("display_name") or metadata.get("full_name") or metadata.get("name"),
            role=self.role,
            authenticated_at=self.authenticated_at,
            access_token=access_token,
        )


class AuthenticatedResponse(BaseModel):
    """Response for authenticated test endpoint."""

    model_config = ConfigDict(from_attributes=True)

    authenticated: bool = Field(default=True, description="Authentication status")
    user_id: str = Field(description="Authenticated user ID")
    email: str | None = Field(default=None, description="User email if available")
    role: str | None = Field(default=None, description="User role if available")


class CurrentUserResponse(BaseModel):
    """Identity of the signed-in user."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="User ID")
    email: str | None = Field(default=None, description="User's email address")
    display_name: str | None = Field(default=None, description="User's display name")


# Registration


class SignupRequest(BaseModel):
    """Request schema for registration."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., description="Display name", min_length=1, max_length=255)
    email: str = Field(..., description="User's email address", min_length=3, max_length=255)
    password: str = Field(..., description="User's password", min_length=6, max_length=100)


class SignupResponse(BaseModel):
    """Response schema for registration."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="Newly created user ID")
    email: str = Field(description="User's email address")
    message: str = Field(description="Success message")


# Login


class LoginRequest(BaseModel):
    """Request schema for user login."""

    model_config = ConfigDict(from_attributes=True)

    email: str = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")


class LoginResponse(BaseModel):
    """Response schema for a successful sign-in."""

    model_config = ConfigDict(from_attributes=True)

    access_token: str = Field(description="JWT access token")
    refresh_token: str | None = Field(default=None, description="Refresh token if available")
    user_id: str = Field(description="User ID")
    email: str | None = Field(default=None, description="User's email address")
    expires_in: int = Field(description="Token expiration time in seconds")
    redirectTo: str = Field(description="Page to navigate to after sign-in")


# Federated sign-in


class OAuthStartResponse(BaseModel):
    """Where to send the browser to continue a federated sign-in."""

    model_config = ConfigDict(from_attributes=True)

    provider: OAuthProvider = Field(description="Selected provider")
    url: str = Field(description="Provider authorization URL")


# Password reset


class ForgotPasswordRequest(BaseModel):
    """Request schema for password reset request."""

    model_config = ConfigDict(from_attributes=True)

    email: str = Field(..., description="User's email address", min_length=3, max_length=255)
