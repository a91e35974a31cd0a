"""Authentication API routes."""

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from src.api.deps import (
    CurrentUser,
    clear_session_cookie,
    get_access_token,
    pop_oauth_verifier_cookie,
    set_oauth_verifier_cookie,
    set_session_cookie,
)
from src.api.middleware.error_handler import APIError, api_error_handler
from src.schemas.auth import (
    CurrentUserResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    OAuthProvider,
    OAuthStartResponse,
    SignupRequest,
    SignupResponse,
)
from src.schemas.common import MessageResponse
from src.services.auth_service import AuthService
from src.services.session_guard import LANDING_PAGE, path_for

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Create an account with name, email and password. A verification email is sent; the user is not signed in.",
)
async def register(data: SignupRequest) -> SignupResponse:
    """Register a new user with name, email and password.

    Args:
        data: Registration form.

    Returns:
        SignupResponse: New user ID, email and the success message.

    Raises:
        ServiceError: 400 with the provider's message if any step fails.
    """
    service = AuthService()
    result = await service.register(name=data.name, email=data.email, password=data.password)
    return SignupResponse(**result)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login user",
    description="Authenticate with email and password. Sets the session cookie and returns the access token.",
)
async def login(data: LoginRequest, response: Response) -> LoginResponse:
    """Login user with email and password.

    Only users with a verified email get a session.

    Raises:
        ServiceError: 403 if the email is not verified, 400 with the
            provider's message otherwise.
    """
    service = AuthService()
    result = await service.login(email=data.email, password=data.password)
    set_session_cookie(response, result["access_token"])
    return LoginResponse(**result)


@router.get(
    "/oauth/{provider}",
    response_model=OAuthStartResponse,
    summary="Start federated sign-in",
    description="Returns the provider authorization URL. The PKCE verifier is kept in a short-lived cookie.",
)
async def start_oauth(provider: OAuthProvider, response: Response) -> OAuthStartResponse:
    service = AuthService()
    url, code_verifier = await service.start_oauth(provider)
    if code_verifier:
        set_oauth_verifier_cookie(response, code_verifier)
    return OAuthStartResponse(provider=provider, url=url)


@router.get(
    "/callback",
    response_class=RedirectResponse,
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Federated sign-in callback",
    description="Exchanges the provider code for a session and redirects to the landing page.",
)
async def oauth_callback(
    request: Request,
    code: str | None = Query(default=None, description="Authorization code"),
    error_code: str | None = Query(default=None, description="Provider error code"),
    error_description: str | None = Query(default=None, description="Provider error message"),
) -> Response:
    """Finish a federated sign-in.

    The PKCE verifier cookie is cleared whether or not the exchange succeeds.

    Returns:
        A redirect to the landing page, or the error response: 409 if the
        email already belongs to an account with another sign-in method,
        400 with the provider's message otherwise.
    """
    redirect = RedirectResponse(url=path_for(LANDING_PAGE), status_code=status.HTTP_303_SEE_OTHER)
    code_verifier = pop_oauth_verifier_cookie(request, redirect)

    service = AuthService()
    try:
        result = await service.complete_oauth(
            code=code,
            code_verifier=code_verifier,
            error_code=error_code,
            error_description=error_description,
        )
    except APIError as e:
        failure = await api_error_handler(request, e)
        pop_oauth_verifier_cookie(request, failure)
        return failure
    set_session_cookie(redirect, result["access_token"])
    return redirect


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request password reset",
    description="Send a password reset email. Provider errors are returned as-is.",
)
async def forgot_password(data: ForgotPasswordRequest) -> MessageResponse:
    service = AuthService()
    result = await service.request_password_reset(email=data.email)
    return MessageResponse(**result)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout user",
    description="Sign the session out at the provider and clear the session cookie.",
)
async def logout(request: Request, response: Response) -> MessageResponse:
    """Logout whoever holds the current token.

    Works without a valid session so a stale cookie can always be cleared.
    """
    service = AuthService()
    result = await service.logout(get_access_token(request))
    clear_session_cookie(response)
    return MessageResponse(**result)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Get current user",
    description="Get the authenticated user's information from JWT token.",
)
async def get_current_user_info(user: CurrentUser) -> CurrentUserResponse:
    return CurrentUserResponse(
        user_id=str(user.user_id),
        email=user.email,
        display_name=user.display_name,
    )
