"""Route table and redirect rules for page navigation."""

from dataclasses import dataclass
from enum import Enum

from src.schemas.auth import UserContext


class Page(str, Enum):
    """Named pages of the application."""

    ROOT = "root"
    LOGIN = "login"
    REGISTER = "register"
    HOME = "home"
    DASHBOARD = "dashboard"


class Access(str, Enum):
    """Who may stay on a page."""

    GUEST_ONLY = "guest_only"
    AUTHENTICATED = "authenticated"
    ANY = "any"


@dataclass(frozen=True)
class Route:
    """A page's path and access rule."""

    path: str
    access: Access


ROUTES: dict[Page, Route] = {
    Page.ROOT: Route("/", Access.GUEST_ONLY),
    Page.LOGIN: Route("/login", Access.GUEST_ONLY),
    Page.REGISTER: Route("/register", Access.GUEST_ONLY),
    Page.HOME: Route("/home", Access.AUTHENTICATED),
    Page.DASHBOARD: Route("/dashboard", Access.ANY),
}

# Where signed-in users land, and where anonymous users are sent
LANDING_PAGE = Page.HOME
SIGN_IN_PAGE = Page.LOGIN
RESULTS_PAGE = Page.DASHBOARD


def path_for(page: Page) -> str:
    """URL path of a page."""
    return ROUTES[page].path


def resolve_redirect(page: Page, user: UserContext | None) -> Page | None:
    """Decide whether a visit to ``page`` must be redirected.

    Args:
        page: The page being loaded.
        user: The current session, or None when signed out.

    Returns:
        Page | None: The page to replace the current one with, or None to stay.
    """
    access = ROUTES[page].access
    if user is not None and access is Access.GUEST_ONLY:
        return LANDING_PAGE
    if user is None and access is Access.AUTHENTICATED:
        return SIGN_IN_PAGE
    return None
