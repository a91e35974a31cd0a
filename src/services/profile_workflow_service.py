"""Profile workflow: load the form, save it with media, erase the account."""

import logging

from src.api.middleware.error_handler import ErrorCode, ServiceError
from src.core.config import get_settings
from src.core.identity import IdentityProvider
from src.models.profile import Profile, ProfileWrite
from src.schemas.auth import UserContext
from src.schemas.profile import (
    DeleteAccountResponse,
    ProfileLoadResponse,
    ProfileRecord,
    ProfileSaveResponse,
)
from src.services.media_service import MediaStorage, get_media_storage
from src.services.profile_service import ProfileService
from src.services.profile_session import DELETE_BUSY_LABEL, SAVE_BUSY_LABEL, ProfileSession
from src.services.session_guard import RESULTS_PAGE, SIGN_IN_PAGE, path_for

logger = logging.getLogger(__name__)

NOT_LOGGED_IN_MESSAGE = "You're not logged in."
NO_USER_MESSAGE = "No user is currently logged in."
PROFILE_SAVED_MESSAGE = "Profile saved."
RECENT_LOGIN_MESSAGE = (
    "This is a sensitive operation and requires you to log in again before deleting your account."
)
ACCOUNT_DELETED_MESSAGE = "Your account has been successfully deleted."


def welcome_text(user: UserContext) -> str:
    return f"Welcome, {user.greeting_name}!"


class ProfileWorkflowService:
    """Orchestrates the document store, media storage and identity provider."""

    def __init__(
        self,
        profiles: ProfileService | None = None,
        media: MediaStorage | None = None,
        identity: IdentityProvider | None = None,
    ) -> None:
        """Initialize with the three collaborators; defaults follow settings."""
        self.settings = get_settings()
        self.profiles = profiles or ProfileService()
        self.media = media or get_media_storage()
        self._identity = identity

    @property
    def identity(self) -> IdentityProvider:
        # Only account deletion talks to the identity provider
        if self._identity is None:
            self._identity = IdentityProvider()
        return self._identity

    async def load(self, user: UserContext) -> ProfileLoadResponse:
        """Fetch the form values for the signed-in user.

        Read failures degrade to an empty form; nothing is raised.

        Returns:
            ProfileLoadResponse: Form values, or only ``redirectTo`` for a
            returning user when that redirect is enabled.
        """
        welcome = welcome_text(user)
        try:
            row: Profile | None = await self.profiles.get_profile(user.user_id)
        except Exception as e:
            logger.error("Error loading profile for user %s: %s", user.user_id, e)
            return self._empty_form(welcome)

        if row is None:
            return self._empty_form(welcome)

        if self.settings.redirect_returning_users and row.get("age"):
            logger.info("Returning user %s sent to %s", user.user_id, path_for(RESULTS_PAGE))
            return ProfileLoadResponse(redirectTo=path_for(RESULTS_PAGE))

        record = ProfileRecord.from_row(row)
        return ProfileLoadResponse(
            welcome=welcome,
            profile=record,
            showVoicePlayback=record.voiceURL is not None,
        )

    @staticmethod
    def _empty_form(welcome: str) -> ProfileLoadResponse:
        return ProfileLoadResponse(welcome=welcome, profile=ProfileRecord(), showVoicePlayback=False)

    async def save(
        self,
        session: ProfileSession,
        age: str,
        hobbies: str,
        skills: str,
    ) -> ProfileSaveResponse:
        """Upload pending media, then merge-write it with the text fields.

        Any upload failure aborts before the write, so no partial record is
        stored. The save control is busy for the whole operation.

        Raises:
            ServiceError: NOT_AUTHENTICATED without a user, or the failed
                step's code with the message prefixed by ``Error:``.
        """
        user = session.user
        if user is None:
            raise ServiceError(NOT_LOGGED_IN_MESSAGE, code=ErrorCode.NOT_AUTHENTICATED)

        with session.save.busy(SAVE_BUSY_LABEL):
            fields: ProfileWrite = {"age": age, "hobbies": hobbies, "skills": skills}
            try:
                if session.photo is not None:
                    fields["photo_url"] = await self.media.upload_photo(user.user_id, session.photo)
                if session.clip is not None:
                    fields["voice_url"] = await self.media.upload_voice(user.user_id, session.clip)
                await self.profiles.merge_profile(user.user_id, fields)
            except ServiceError as e:
                logger.error("Error saving profile for user %s: %s", user.user_id, e.message)
                raise ServiceError(f"Error: {e.message}", code=e.code, status_code=e.status_code) from e
            except Exception as e:
                logger.error("Unexpected error saving profile for user %s: %s", user.user_id, e)
                raise ServiceError(f"Error: {e}") from e

        session.clear_pending_media()

        return ProfileSaveResponse(
            message=PROFILE_SAVED_MESSAGE,
            saved=ProfileRecord.from_row(fields),
            redirectTo=path_for(RESULTS_PAGE),
        )

    async def delete_account(self, session: ProfileSession, confirm: bool) -> DeleteAccountResponse:
        """Erase voice media, the profile record and the identity, in that order.

        A declined confirmation returns without touching anything. Steps
        that already ran are not undone when a later one fails.

        Raises:
            ServiceError: NOT_AUTHENTICATED without a user,
                REQUIRES_RECENT_LOGIN with re-authentication instructions, or
                the failing step's code as ``Failed to delete account: ...``.
        """
        user = session.user
        if user is None:
            raise ServiceError(NO_USER_MESSAGE, code=ErrorCode.NOT_AUTHENTICATED)

        if not confirm:
            return DeleteAccountResponse(deleted=False)

        with session.delete.busy(DELETE_BUSY_LABEL):
            try:
                await self._delete_voice(user)
                await self.profiles.delete_profile(user.user_id)
                self.identity.delete_account(user)
            except ServiceError as e:
                if e.code is ErrorCode.REQUIRES_RECENT_LOGIN:
                    logger.info("Account deletion for user %s needs a recent login", user.user_id)
                    raise ServiceError(RECENT_LOGIN_MESSAGE, code=e.code) from e
                logger.error("Error deleting account %s: %s", user.user_id, e.message)
                raise ServiceError(
                    f"Failed to delete account: {e.message}",
                    code=e.code,
                    status_code=e.status_code,
                ) from e
            except Exception as e:
                logger.error("Unexpected error deleting account %s: %s", user.user_id, e)
                raise ServiceError(f"Failed to delete account: {e}") from e

        logger.info("Account deleted: %s", user.user_id)
        return DeleteAccountResponse(
            deleted=True,
            message=ACCOUNT_DELETED_MESSAGE,
            redirectTo=path_for(SIGN_IN_PAGE),
        )

    async def _delete_voice(self, user: UserContext) -> None:
        try:
            await self.media.delete_voice(user.user_id)
        except ServiceError as e:
            if e.code is not ErrorCode.OBJECT_NOT_FOUND:
                raise
            logger.info("No voice intro to delete for user %s", user.user_id)
