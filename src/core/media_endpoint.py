"""Client for the third-party media upload endpoint (unsigned presets)."""

import logging

import httpx

from src.api.middleware.error_handler import ErrorCode, ServiceError
from src.core.config import get_settings

logger = logging.getLogger(__name__)

# Resource-type segment of the upload URL per asset kind
IMAGE_RESOURCE_TYPE = "image"
AUDIO_RESOURCE_TYPE = "video"


class MediaEndpointClient:
    """Posts files to ``{base}/{cloud}/{resource_type}/upload``.

    The preset name is the only credential; it is visible to anyone who
    can read the client configuration.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize the client.

        Args:
            transport: Optional transport, used to stub the endpoint in tests.
        """
        self.settings = get_settings()
        self.transport = transport

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        resource_type: str,
        upload_preset: str,
    ) -> str:
        """Upload one file and return its ``secure_url``.

        Raises:
            ServiceError: UPLOAD_FAILED on HTTP errors or a response without a URL.
        """
        url = f"{self.settings.media_upload_url_base}/{resource_type}/upload"

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    url,
                    files={"file": (filename, content, content_type)},
                    data={"upload_preset": upload_preset},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response) or str(e)
            logger.error("Media upload rejected (%s): %s", e.response.status_code, message)
            raise ServiceError(message, code=ErrorCode.UPLOAD_FAILED) from e
        except httpx.HTTPError as e:
            logger.error("Media upload failed: %s", e)
            raise ServiceError(str(e), code=ErrorCode.UPLOAD_FAILED) from e
        except ValueError as e:
            raise ServiceError("Upload failed: no URL returned.", code=ErrorCode.UPLOAD_FAILED) from e

        secure_url = payload.get("secure_url") if isinstance(payload, dict) else None
        if not secure_url:
            raise ServiceError("Upload failed: no URL returned.", code=ErrorCode.UPLOAD_FAILED)

        logger.info("Uploaded %s to media endpoint as %s", filename, resource_type)
        return secure_url


def _error_message(response: httpx.Response) -> str | None:
    """Extract ``error.message`` from an endpoint error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    return error.get("message") if isinstance(error, dict) else None
