"""Blob store facade over Supabase Storage."""

import logging

import httpx
from storage3.exceptions import StorageApiError

from src.api.middleware.error_handler import ErrorCode, ServiceError
from src.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)


def _failure_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or type(error).__name__


class BlobStore:
    """Upload, resolve and delete objects in one storage bucket."""

    def __init__(self, bucket: str) -> None:
        self.bucket = bucket
        self.client = get_supabase_client()

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes to ``path``, replacing any existing object.

        Returns:
            str: The storage path, used as the handle for get_download_url.
        """
        try:
            self.client.storage.from_(self.bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except (StorageApiError, httpx.HTTPError) as e:
            raise ServiceError(
                _failure_message(e),
                code=ErrorCode.UPLOAD_FAILED,
            ) from e

        logger.info("Uploaded %s/%s (%d bytes)", self.bucket, path, len(content))
        return path

    def get_download_url(self, path: str) -> str:
        """Public URL of an uploaded object."""
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def delete(self, path: str) -> None:
        """Delete one object.

        Raises:
            ServiceError: OBJECT_NOT_FOUND when nothing exists at ``path``.
        """
        try:
            removed = self.client.storage.from_(self.bucket).remove([path])
        except (StorageApiError, httpx.HTTPError) as e:
            raise ServiceError(_failure_message(e)) from e

        # Storage answers a missing object with an empty list rather than an error
        if not removed:
            raise ServiceError(
                f"Object '{path}' does not exist.",
                code=ErrorCode.OBJECT_NOT_FOUND,
            )
        logger.info("Deleted %s/%s", self.bucket, path)
