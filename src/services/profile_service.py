"""Profile record persistence in the document store."""

import logging
from typing import Any
from uuid import UUID

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError

from src.api.middleware.error_handler import ServiceError
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.profile import Profile, ProfileWrite

logger = logging.getLogger(__name__)


def _store_error(error: Exception) -> ServiceError:
    return ServiceError(getattr(error, "message", None) or str(error) or type(error).__name__)


class ProfileService:
    """Service for reading, merge-writing and deleting profile records."""

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()
        self.table = get_settings().profile_table

    async def get_profile(self, user_id: UUID) -> Profile | None:
        """Get the profile record of a user.

        Args:
            user_id: The identity's id, which is also the record key.

        Returns:
            Profile | None: The record or None if the user has none yet.
        """
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("id", str(user_id))
                .maybe_single()
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _store_error(e) from e

        # maybe_single() yields no response at all when the row is missing
        if response is None or not response.data:
            return None
        return response.data

    async def merge_profile(self, user_id: UUID, fields: ProfileWrite) -> dict[str, Any]:
        """Merge-write fields into the user's record, creating it if needed.

        Only the keys present in ``fields`` are sent, so every other stored
        column keeps its value.

        Args:
            user_id: The identity's id.
            fields: Fields to write.

        Returns:
            dict: The written payload, including the key.
        """
        payload: dict[str, Any] = {"id": str(user_id), **fields}

        try:
            self.client.table(self.table).upsert(payload, on_conflict="id").execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _store_error(e) from e

        logger.info("Profile merged for user %s: %s", user_id, sorted(fields))
        return payload

    async def delete_profile(self, user_id: UUID) -> None:
        """Delete the user's record. Deleting a missing record is not an error."""
        try:
            self.client.table(self.table).delete().eq("id", str(user_id)).execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise _store_error(e) from e

        logger.info("Profile deleted for user %s", user_id)
