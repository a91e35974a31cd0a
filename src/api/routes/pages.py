"""Page routes guarded by session presence."""

from fastapi import APIRouter, status
from fastapi.responses import RedirectResponse

from src.api.deps import OptionalUser
from src.schemas.auth import UserContext
from src.schemas.common import PageResponse
from src.services.profile_workflow_service import welcome_text
from src.services.session_guard import ROUTES, Page, path_for, resolve_redirect

router = APIRouter(tags=["pages"])


def render_page(page: Page, user: UserContext | None) -> PageResponse | RedirectResponse:
    """Apply the session guard to a page visit.

    A redirect uses 303 so the browser replaces the request with a GET of
    the target page.
    """
    target = resolve_redirect(page, user)
    if target is not None:
        return RedirectResponse(url=path_for(target), status_code=status.HTTP_303_SEE_OTHER)

    return PageResponse(
        page=page.value,
        path=path_for(page),
        authenticated=user is not None,
        welcome=welcome_text(user) if user is not None else None,
    )


def _register_page(page: Page) -> None:
    async def view(user: OptionalUser) -> PageResponse | RedirectResponse:
        return render_page(page, user)

    router.add_api_route(
        ROUTES[page].path,
        view,
        methods=["GET"],
        response_model=None,
        name=f"page_{page.value}",
        summary=f"{page.value.capitalize()} page",
    )


for _page in Page:
    _register_page(_page)
