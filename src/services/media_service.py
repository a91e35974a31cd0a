"""Upload and delete profile media on the configured backend."""

import logging
from typing import Protocol
from uuid import UUID

from src.core.blob_store import BlobStore
from src.core.config import MediaBackend, get_settings
from src.core.media_endpoint import AUDIO_RESOURCE_TYPE, IMAGE_RESOURCE_TYPE, MediaEndpointClient
from src.services.media_capture import AudioClip, PendingPhoto

logger = logging.getLogger(__name__)

# Only one voice intro is kept per user
VOICE_FILENAME = "intro.webm"


def photo_object_path(user_id: UUID, filename: str) -> str:
    """Object path of a profile photo inside the photo bucket."""
    return f"{user_id}/{filename}"


def voice_object_path(user_id: UUID) -> str:
    """Object path of the voice intro inside the voice bucket."""
    return f"{user_id}/{VOICE_FILENAME}"


class MediaStorage(Protocol):
    """Backend that owns both photo and voice assets."""

    async def upload_photo(self, user_id: UUID, photo: PendingPhoto) -> str:
        """Upload a photo and return the URL to persist."""
        ...

    async def upload_voice(self, user_id: UUID, clip: AudioClip) -> str:
        """Upload a voice clip and return the URL to persist."""
        ...

    async def delete_voice(self, user_id: UUID) -> None:
        """Delete the user's voice intro; OBJECT_NOT_FOUND if there is none."""
        ...


class BlobStoreMediaStorage:
    """Media kept in storage buckets under per-user paths."""

    def __init__(self) -> None:
        settings = get_settings()
        self.photos = BlobStore(settings.photo_bucket)
        self.voices = BlobStore(settings.voice_bucket)

    async def upload_photo(self, user_id: UUID, photo: PendingPhoto) -> str:
        handle = self.photos.upload(
            photo_object_path(user_id, photo.filename),
            photo.content,
            photo.content_type,
        )
        return self.photos.get_download_url(handle)

    async def upload_voice(self, user_id: UUID, clip: AudioClip) -> str:
        handle = self.voices.upload(voice_object_path(user_id), clip.content, clip.content_type)
        return self.voices.get_download_url(handle)

    async def delete_voice(self, user_id: UUID) -> None:
        self.voices.delete(voice_object_path(user_id))


class MediaEndpointStorage:
    """Media posted to the third-party endpoint with unsigned presets."""

    def __init__(self, client: MediaEndpointClient | None = None) -> None:
        self.settings = get_settings()
        self.client = client or MediaEndpointClient()

    async def upload_photo(self, user_id: UUID, photo: PendingPhoto) -> str:
        return await self.client.upload(
            photo.content,
            photo.filename,
            photo.content_type,
            resource_type=IMAGE_RESOURCE_TYPE,
            upload_preset=self.settings.media_image_preset,
        )

    async def upload_voice(self, user_id: UUID, clip: AudioClip) -> str:
        return await self.client.upload(
            clip.content,
            VOICE_FILENAME,
            clip.content_type,
            resource_type=AUDIO_RESOURCE_TYPE,
            upload_preset=self.settings.media_audio_preset,
        )

    async def delete_voice(self, user_id: UUID) -> None:
        # Unsigned presets cannot delete; the asset outlives the account
        logger.warning("Voice intro of user %s left on media endpoint", user_id)


def get_media_storage() -> MediaStorage:
    """Storage for the configured media backend."""
    if get_settings().media_backend is MediaBackend.MEDIA_ENDPOINT:
        return MediaEndpointStorage()
    return BlobStoreMediaStorage()
