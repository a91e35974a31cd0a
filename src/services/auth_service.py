"""Credential flows: registration, login, federated sign-in, password reset."""

import logging
from typing import Any

from src.api.middleware.error_handler import ErrorCode, ServiceError
from src.core.identity import PROVIDER_ERROR_CODES, AuthSession, IdentityProvider
from src.services.session_guard import LANDING_PAGE, path_for

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESS_MESSAGE = "Registration successful! Please check your inbox to verify your email."
EMAIL_NOT_VERIFIED_MESSAGE = "Please verify your email before logging in."
ACCOUNT_EXISTS_MESSAGE = "An account already exists with this email. Try signing in with the original method."
PASSWORD_RESET_SENT_MESSAGE = "Password reset link sent! Check your email."


class AuthService:
    """Service for the credential flows that establish a session."""

    def __init__(self, identity: IdentityProvider | None = None) -> None:
        """Initialize auth service.

        Args:
            identity: Identity provider; a fresh isolated one by default.
        """
        self.identity = identity or IdentityProvider()

    async def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        """Create an identity, name it, then mail the verification link.

        The verification email is only requested after the display name is
        set. The user is not signed in.

        Returns:
            dict: user_id, email and the success message.

        Raises:
            ServiceError: With the provider's message if any step fails.
        """
        user = self.identity.create_account(email, password)
        self.identity.update_profile(user.id, name)
        self.identity.send_verification_email(email)

        logger.info("User registered: %s", user.id)

        return {
            "user_id": str(user.id),
            "email": user.email or email,
            "message": REGISTRATION_SUCCESS_MESSAGE,
        }

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Sign in with email and password.

        A session whose email is not verified is signed out again right away
        so it never counts as authenticated.

        Returns:
            dict: Tokens, user info and the landing page to go to.

        Raises:
            ServiceError: EMAIL_NOT_VERIFIED, or the provider's error.
        """
        try:
            session = self.identity.sign_in(email, password)
        except ServiceError as e:
            if e.code is ErrorCode.EMAIL_NOT_VERIFIED:
                raise self._email_not_verified() from e
            raise

        if not session.user.email_verified:
            logger.info("Rejected login of unverified user: %s", session.user.id)
            self.identity.sign_out(session.access_token)
            raise self._email_not_verified()

        logger.info("User logged in: %s", session.user.id)
        return self._session_result(session)

    async def start_oauth(self, provider: str) -> tuple[str, str | None]:
        """Begin a federated sign-in with ``provider``.

        Returns:
            tuple: Authorization URL and the PKCE code verifier to keep for the callback.
        """
        url, code_verifier = self.identity.sign_in_with_provider(provider)
        logger.info("OAuth sign-in started with %s", provider)
        return url, code_verifier

    async def complete_oauth(
        self,
        code: str | None,
        code_verifier: str | None,
        error_code: str | None = None,
        error_description: str | None = None,
    ) -> dict[str, Any]:
        """Finish a federated sign-in from the provider callback.

        Raises:
            ServiceError: ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL with a
                targeted message, or the provider's message otherwise.
        """
        if error_code or error_description:
            if PROVIDER_ERROR_CODES.get(error_code or "") is ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL:
                raise self._account_exists()
            raise ServiceError(error_description or error_code or "Sign-in failed")

        if not code:
            raise ServiceError("Sign-in failed: missing authorization code")

        try:
            session = self.identity.complete_provider_sign_in(code, code_verifier)
        except ServiceError as e:
            if e.code is ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL:
                raise self._account_exists() from e
            raise

        logger.info("User signed in with OAuth: %s", session.user.id)
        return self._session_result(session)

    async def request_password_reset(self, email: str) -> dict[str, Any]:
        """Mail a password reset link; provider errors surface verbatim."""
        self.identity.send_password_reset(email)
        logger.info("Password reset email sent to: %s", email)
        return {"message": PASSWORD_RESET_SENT_MESSAGE}

    async def logout(self, access_token: str | None) -> dict[str, Any]:
        """Sign the session out at the provider.

        Failure is logged only; the caller clears the cookie regardless.
        """
        if access_token:
            try:
                self.identity.sign_out(access_token)
            except ServiceError as e:
                logger.warning("Provider sign-out failed: %s", e.message)

        return {"message": "Logged out successfully"}

    @staticmethod
    def _session_result(session: AuthSession) -> dict[str, Any]:
        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "user_id": str(session.user.id),
            "email": session.user.email,
            "expires_in": session.expires_in,
            "redirectTo": path_for(LANDING_PAGE),
        }

    @staticmethod
    def _email_not_verified() -> ServiceError:
        return ServiceError(EMAIL_NOT_VERIFIED_MESSAGE, code=ErrorCode.EMAIL_NOT_VERIFIED)

    @staticmethod
    def _account_exists() -> ServiceError:
        return ServiceError(ACCOUNT_EXISTS_MESSAGE, code=ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL)
