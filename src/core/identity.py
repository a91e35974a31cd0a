"""Identity provider facade over Supabase Auth.

Exposes exactly the identity operations the profile workflow relies on and
translates provider failures into ServiceError with a stable ErrorCode.
Provider messages are kept verbatim because they are shown to the user.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, NoReturn
from uuid import UUID

import httpx
from supabase_auth import SyncMemoryStorage
from supabase_auth.errors import AuthError as ProviderAuthError

from src.api.middleware.error_handler import ErrorCode, ServiceError
from src.core.config import get_settings
from src.core.supabase import create_auth_client
from src.schemas.auth import UserContext

logger = logging.getLogger(__name__)

# Provider error codes that the workflow branches on
PROVIDER_ERROR_CODES: dict[str, ErrorCode] = {
    "email_not_confirmed": ErrorCode.EMAIL_NOT_VERIFIED,
    "identity_already_exists": ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL,
    "email_conflict_identity_not_deletable": ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL,
    "reauthentication_needed": ErrorCode.REQUIRES_RECENT_LOGIN,
    "user_not_found": ErrorCode.OBJECT_NOT_FOUND,
}

# SDK errors plus transport failures of the HTTP client underneath it
PROVIDER_FAILURES = (ProviderAuthError, httpx.HTTPError)

# Where the provider sends the browser back after a federated sign-in
OAUTH_CALLBACK_PATH = "/api/v1/auth/callback"

REQUIRES_RECENT_LOGIN_MESSAGE = "This operation is sensitive and requires recent authentication. Log in again before retrying this request."


@dataclass
class IdentityUser:
    """The provider's view of a principal."""

    id: UUID
    email: str | None
    display_name: str | None
    email_verified: bool

    @classmethod
    def from_provider(cls, user: Any) -> "IdentityUser":
        metadata = getattr(user, "user_metadata", None) or {}
        return cls(
            id=UUID(str(user.id)),
            email=user.email,
            display_name=metadata.get("display_name") or metadata.get("full_name") or metadata.get("name"),
            email_verified=getattr(user, "email_confirmed_at", None) is not None,
        )


@dataclass
class AuthSession:
    """A signed-in session issued by the provider."""

    access_token: str
    refresh_token: str | None
    expires_in: int
    user: IdentityUser


def raise_provider_error(error: Exception) -> NoReturn:
    """Re-raise a provider exception as ServiceError.

    Args:
        error: Exception raised by the Supabase SDK.

    Raises:
        ServiceError: Always, carrying the mapped code and provider message.
    """
    provider_code = getattr(error, "code", None) or ""
    code = PROVIDER_ERROR_CODES.get(provider_code, ErrorCode.PROVIDER_ERROR)
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    raise ServiceError(message, code=code) from error


def _find_code_verifier(storage: SyncMemoryStorage) -> str | None:
    """Return the PKCE verifier the auth client stored for an OAuth redirect."""
    for key, value in storage.storage.items():
        if key.endswith("-code-verifier"):
            return value
    return None


class IdentityProvider:
    """Identity service used by the credential flows and the account eraser."""

    def __init__(self) -> None:
        """Initialize with an isolated auth client per instance."""
        self.client = create_auth_client()
        self.settings = get_settings()

    @property
    def _callback_url(self) -> str:
        return f"{self.settings.auth_redirect_url.rstrip('/')}{OAUTH_CALLBACK_PATH}"

    def create_account(self, email: str, password: str) -> IdentityUser:
        """Create an unverified email/password identity without mailing anything."""
        try:
            response = self.client.auth.admin.create_user(
                {"email": email, "password": password, "email_confirm": False}
            )
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

        if not response.user:
            raise ServiceError("Failed to create user account")
        return IdentityUser.from_provider(response.user)

    def update_profile(self, user_id: UUID, display_name: str) -> None:
        """Set the identity's display name."""
        try:
            self.client.auth.admin.update_user_by_id(
                str(user_id),
                {"user_metadata": {"display_name": display_name}},
            )
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

    def send_verification_email(self, email: str) -> None:
        """Mail the sign-up confirmation link."""
        try:
            self.client.auth.resend(
                {
                    "type": "signup",
                    "email": email,
                    "options": {"email_redirect_to": self.settings.auth_redirect_url},
                }
            )
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

        if not response.user or not response.session:
            raise ServiceError("Login failed: No session created")
        return self._to_session(response.session, response.user)

    def sign_in_with_provider(self, provider: str) -> tuple[str, str | None]:
        """Start a federated sign-in.

        Returns:
            tuple: Provider authorization URL and the PKCE code verifier the
            callback must present.
        """
        storage = SyncMemoryStorage()
        client = create_auth_client(storage)
        try:
            response = client.auth.sign_in_with_oauth(
                {
                    "provider": provider,
                    "options": {"redirect_to": self._callback_url},
                }
            )
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

        return response.url, _find_code_verifier(storage)

    def complete_provider_sign_in(self, auth_code: str, code_verifier: str | None) -> AuthSession:
        """Exchange the OAuth callback code for a session."""
        try:
            response = self.client.auth.exchange_code_for_session(
                {
                    "auth_code": auth_code,
                    "code_verifier": code_verifier or "",
                    "redirect_to": self._callback_url,
                }
            )
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

        if not response.user or not response.session:
            raise ServiceError("Sign-in failed: No session created")
        return self._to_session(response.session, response.user)

    def send_password_reset(self, email: str) -> None:
        """Mail a password reset link."""
        try:
            self.client.auth.reset_password_for_email(
                email,
                options={"redirect_to": self.settings.auth_redirect_url},
            )
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        try:
            self.client.auth.admin.sign_out(access_token)
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

    def delete_account(self, user: UserContext) -> None:
        """Delete the identity itself.

        Refuses with REQUIRES_RECENT_LOGIN when the user's last sign-in is
        older than the configured window.
        """
        max_age = self.settings.recent_login_max_age_seconds
        if user.authenticated_at is None or time.time() - user.authenticated_at.timestamp() > max_age:
            raise ServiceError(
                REQUIRES_RECENT_LOGIN_MESSAGE,
                code=ErrorCode.REQUIRES_RECENT_LOGIN,
            )

        try:
            self.client.auth.admin.delete_user(str(user.user_id))
        except PROVIDER_FAILURES as e:
            raise_provider_error(e)

        logger.info("Identity deleted: %s", user.user_id)

    @staticmethod
    def _to_session(session: Any, user: Any) -> AuthSession:
        return AuthSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in or 3600,
            user=IdentityUser.from_provider(user),
        )
