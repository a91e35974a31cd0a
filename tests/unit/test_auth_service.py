"""Unit tests for AuthService credential flows."""

from unittest.mock import MagicMock, call
from uuid import UUID

import pytest

from src.api.middleware.error_handler import ErrorCode, ServiceError
from src.core.identity import AuthSession, IdentityUser
from src.services.auth_service import (
    ACCOUNT_EXISTS_MESSAGE,
    EMAIL_NOT_VERIFIED_MESSAGE,
    PASSWORD_RESET_SENT_MESSAGE,
    REGISTRATION_SUCCESS_MESSAGE,
    AuthService,
)

USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")


def make_session(email_verified: bool = True) -> AuthSession:
    return AuthSession(
        access_token="access-token",
        refresh_token="refresh-token",
        expires_in=3600,
        user=IdentityUser(id=USER_ID, email="test@example.com", display_name="Test User", email_verified=email_verified),
    )


@pytest.fixture
def mock_identity() -> MagicMock:
    """Create a mock identity provider."""
    return MagicMock()


@pytest.fixture
def auth_service(mock_identity: MagicMock) -> AuthService:
    return AuthService(identity=mock_identity)


class TestRegister:
    """Tests for register method."""

    @pytest.mark.asyncio
    async def test_creates_names_then_mails_verification(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        """Test the verification email is only requested after the display name is set."""
        mock_identity.create_account.return_value = IdentityUser(
            id=USER_ID, email="new@example.com", display_name=None, email_verified=False
        )

        result = await auth_service.register("New User", "new@example.com", "secret123")

        assert mock_identity.mock_calls == [
            call.create_account("new@example.com", "secret123"),
            call.update_profile(USER_ID, "New User"),
            call.send_verification_email("new@example.com"),
        ]
        assert result["message"] == REGISTRATION_SUCCESS_MESSAGE
        assert result["user_id"] == str(USER_ID)

    @pytest.mark.asyncio
    async def test_provider_error_surfaces_verbatim(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.create_account.side_effect = ServiceError("User already registered")

        with pytest.raises(ServiceError) as exc_info:
            await auth_service.register("New User", "new@example.com", "secret123")

        assert exc_info.value.message == "User already registered"
        mock_identity.send_verification_email.assert_not_called()


class TestLogin:
    """Tests for login method."""

    @pytest.mark.asyncio
    async def test_verified_user_gets_session_and_landing_page(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.sign_in.return_value = make_session()

        result = await auth_service.login("test@example.com", "secret123")

        assert result["access_token"] == "access-token"
        assert result["redirectTo"] == "/home"
        mock_identity.sign_out.assert_not_called()

    @pytest.mark.asyncio
    async def test_unverified_user_is_signed_out(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        """Test that an unverified session is terminated and refused."""
        mock_identity.sign_in.return_value = make_session(email_verified=False)

        with pytest.raises(ServiceError) as exc_info:
            await auth_service.login("test@example.com", "secret123")

        assert exc_info.value.code is ErrorCode.EMAIL_NOT_VERIFIED
        assert exc_info.value.message == EMAIL_NOT_VERIFIED_MESSAGE
        mock_identity.sign_out.assert_called_once_with("access-token")

    @pytest.mark.asyncio
    async def test_provider_refusing_unconfirmed_email(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.sign_in.side_effect = ServiceError("Email not confirmed", code=ErrorCode.EMAIL_NOT_VERIFIED)

        with pytest.raises(ServiceError) as exc_info:
            await auth_service.login("test@example.com", "secret123")

        assert exc_info.value.message == EMAIL_NOT_VERIFIED_MESSAGE
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_wrong_password_message_is_kept(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.sign_in.side_effect = ServiceError("Invalid login credentials")

        with pytest.raises(ServiceError) as exc_info:
            await auth_service.login("test@example.com", "wrong")

        assert exc_info.value.message == "Invalid login credentials"


class TestOAuth:
    """Tests for federated sign-in."""

    @pytest.mark.asyncio
    async def test_start_returns_url_and_verifier(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.sign_in_with_provider.return_value = ("https://accounts.example.com/auth", "verifier")

        url, verifier = await auth_service.start_oauth("github")

        assert url == "https://accounts.example.com/auth"
        assert verifier == "verifier"
        mock_identity.sign_in_with_provider.assert_called_once_with("github")

    @pytest.mark.asyncio
    async def test_complete_exchanges_code(self, auth_service: AuthService, mock_identity: MagicMock) -> None:
        mock_identity.complete_provider_sign_in.return_value = make_session()

        result = await auth_service.complete_oauth("auth-code", "verifier")

        mock_identity.complete_provider_sign_in.assert_called_once_with("auth-code", "verifier")
        assert result["redirectTo"] == "/home"

    @pytest.mark.asyncio
    async def test_callback_error_for_existing_account(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        with pytest.raises(ServiceError) as exc_info:
            await auth_service.complete_oauth(
                None,
                None,
                error_code="identity_already_exists",
                error_description="Identity is already linked to another user",
            )

        assert exc_info.value.code is ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL
        assert exc_info.value.message == ACCOUNT_EXISTS_MESSAGE
        mock_identity.complete_provider_sign_in.assert_not_called()

    @pytest.mark.asyncio
    async def test_exchange_error_for_existing_account(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.complete_provider_sign_in.side_effect = ServiceError(
            "Identity is already linked", code=ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL
        )

        with pytest.raises(ServiceError) as exc_info:
            await auth_service.complete_oauth("auth-code", "verifier")

        assert exc_info.value.message == ACCOUNT_EXISTS_MESSAGE
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_other_callback_errors_are_verbatim(self, auth_service: AuthService) -> None:
        with pytest.raises(ServiceError) as exc_info:
            await auth_service.complete_oauth(None, None, error_code="access_denied", error_description="User cancelled")

        assert exc_info.value.message == "User cancelled"


class TestPasswordResetAndLogout:
    """Tests for password reset and logout."""

    @pytest.mark.asyncio
    async def test_password_reset_success_message(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        result = await auth_service.request_password_reset("test@example.com")

        assert result == {"message": PASSWORD_RESET_SENT_MESSAGE}
        mock_identity.send_password_reset.assert_called_once_with("test@example.com")

    @pytest.mark.asyncio
    async def test_password_reset_error_is_not_masked(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.send_password_reset.side_effect = ServiceError("User not found", code=ErrorCode.OBJECT_NOT_FOUND)

        with pytest.raises(ServiceError) as exc_info:
            await auth_service.request_password_reset("nobody@example.com")

        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_logout_ignores_provider_failure(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        mock_identity.sign_out.side_effect = ServiceError("Session not found")

        result = await auth_service.logout("access-token")

        assert result == {"message": "Logged out successfully"}

    @pytest.mark.asyncio
    async def test_logout_without_token_skips_provider(
        self, auth_service: AuthService, mock_identity: MagicMock
    ) -> None:
        await auth_service.logout(None)

        mock_identity.sign_out.assert_not_called()
