"""Profile API routes."""

from fastapi import APIRouter, File, Form, UploadFile

from src.api.deps import CurrentUser, OptionalUser
from src.api.middleware.error_handler import ValidationError
from src.core.config import get_settings
from src.schemas.profile import PhotoPreviewResponse, ProfileLoadResponse, ProfileSaveResponse
from src.services.media_capture import AudioClip, PendingPhoto
from src.services.profile_session import ProfileSession
from src.services.profile_workflow_service import ProfileWorkflowService

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _is_selected(upload: UploadFile | None) -> bool:
    # Browsers send an unnamed empty part for an untouched file input
    return upload is not None and bool(upload.filename)


async def read_photo(upload: UploadFile | None) -> PendingPhoto | None:
    """Read a selected photo part, enforcing the photo size limit."""
    if not _is_selected(upload):
        return None

    content = await upload.read()
    max_bytes = get_settings().max_photo_bytes
    if len(content) > max_bytes:
        raise ValidationError(f"Photo exceeds maximum size of {max_bytes} bytes")

    return PendingPhoto(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=content,
    )


async def read_voice(parts: list[UploadFile] | None) -> AudioClip | None:
    """Join recorder chunk parts, in order, into one clip."""
    chunks = [await part.read() for part in parts or []]
    chunks = [chunk for chunk in chunks if chunk]
    if not chunks:
        return None

    max_bytes = get_settings().max_voice_bytes
    if sum(len(chunk) for chunk in chunks) > max_bytes:
        raise ValidationError(f"Voice recording exceeds maximum size of {max_bytes} bytes")

    return AudioClip.from_chunks(chunks)


@router.get(
    "/me",
    response_model=ProfileLoadResponse,
    response_model_exclude_none=True,
    summary="Load current user's profile",
    description="Form values for the signed-in user, or a redirect for returning users.",
)
async def load_my_profile(user: CurrentUser) -> ProfileLoadResponse:
    """Load the authenticated user's profile form.

    Never fails on a store error; an empty form is returned instead.
    """
    service = ProfileWorkflowService()
    return await service.load(user)


@router.post(
    "/me",
    response_model=ProfileSaveResponse,
    response_model_exclude_none=True,
    summary="Save current user's profile",
    description="Upload pending photo and voice, then merge them with the text fields into the profile record.",
)
async def save_my_profile(
    user: OptionalUser,
    age: str = Form(default=""),
    hobbies: str = Form(default=""),
    skills: str = Form(default=""),
    photo: UploadFile | None = File(default=None, description="Selected profile photo"),
    voice: list[UploadFile] | None = File(default=None, description="Recorded voice chunks, in order"),
) -> ProfileSaveResponse:
    """Save the profile form with any pending media.

    Raises:
        ServiceError: 401 without a session; the failing step's error
            otherwise, in which case nothing was written.
    """
    session = ProfileSession(user=user)
    # Without a session the workflow refuses before any part is inspected
    if user is not None:
        session.photo = await read_photo(photo)
        session.clip = await read_voice(voice)

    service = ProfileWorkflowService()
    return await service.save(session, age=age, hobbies=hobbies, skills=skills)


@router.post(
    "/photo-preview",
    response_model=PhotoPreviewResponse,
    summary="Preview a photo",
    description="Returns the selected image as a data URL. Nothing is stored.",
)
async def preview_photo(photo: UploadFile = File(..., description="Selected image")) -> PhotoPreviewResponse:
    pending = await read_photo(photo)
    if pending is None:
        raise ValidationError("No photo selected")
    return PhotoPreviewResponse(dataURL=pending.to_data_url())
