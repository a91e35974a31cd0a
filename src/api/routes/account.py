"""Account deletion route."""

from fastapi import APIRouter, Response

from src.api.deps import OptionalUser, clear_session_cookie
from src.schemas.profile import DeleteAccountRequest, DeleteAccountResponse
from src.services.profile_session import ProfileSession
from src.services.profile_workflow_service import ProfileWorkflowService

router = APIRouter(prefix="/account", tags=["account"])


@router.post(
    "/delete",
    response_model=DeleteAccountResponse,
    response_model_exclude_none=True,
    summary="Delete account",
    description=(
        "Permanently delete the voice intro, the profile record and the identity. "
        "Requires confirm=true and a recent sign-in."
    ),
)
async def delete_account(
    data: DeleteAccountRequest,
    user: OptionalUser,
    response: Response,
) -> DeleteAccountResponse:
    """Delete the signed-in user's account.

    A declined confirmation returns ``deleted: false`` and changes nothing.
    On success the session cookie is cleared.

    Raises:
        ServiceError: 401 without a session or when a recent sign-in is
            required; the failing step's error otherwise.
    """
    service = ProfileWorkflowService()
    result = await service.delete_account(ProfileSession(user=user), confirm=data.confirm)
    if result.deleted:
        clear_session_cookie(response)
    return result
