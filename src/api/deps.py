"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.core.config import get_settings
from src.schemas.auth import UserContext


def get_session_cookie_config() -> dict:
    """Get session cookie configuration from settings."""
    settings = get_settings()
    # SameSite=None REQUIRES Secure=True or browsers will reject it
    samesite = "none" if settings.session_cookie_secure else "lax"
    return {
        "key": settings.session_cookie_name,
        "max_age": settings.session_cookie_max_age,
        "httponly": True,
        "secure": settings.session_cookie_secure,
        "samesite": samesite,
        "path": "/",
    }


def get_access_token(request: Request) -> str | None:
    """Extract the access token from the Authorization header or session cookie.

    The header wins; browsers navigating between pages only send the cookie.

    Args:
        request: FastAPI request object.

    Returns:
        str | None: The raw token or None if neither is present.

    Raises:
        HTTPException: 401 if the Authorization header is malformed.
    """
    authorization = request.headers.get("authorization")
    if authorization:
        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authorization header format. Expected: Bearer <token>",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return parts[1]

    return request.cookies.get(get_session_cookie_config()["key"])


async def get_current_user(request: Request) -> UserContext:
    """Extract and validate the current user.

    Use this for API endpoints that require authentication.

    Args:
        request: FastAPI request object.

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    token = get_access_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_jwt(token)
        return payload.to_user_context(access_token=token)

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_optional_user(request: Request) -> UserContext | None:
    """Extract the current user, or None when there is no usable session.

    Used by page routes: a missing, malformed, invalid or expired token all
    mean "signed out".

    Args:
        request: FastAPI request object.

    Returns:
        UserContext | None: The user context if authenticated, None otherwise.
    """
    try:
        return await get_current_user(request)
    except HTTPException:
        return None


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
OptionalUser = Annotated[UserContext | None, Depends(get_optional_user)]


# Cookie utility functions


def set_session_cookie(response: Response, token: str) -> None:
    """Set session cookie on response.

    Args:
        response: FastAPI response object.
        token: The access token to set.
    """
    config = get_session_cookie_config()
    response.set_cookie(
        key=config["key"],
        value=token,
        max_age=config["max_age"],
        httponly=config["httponly"],
        secure=config["secure"],
        samesite=config["samesite"],
        path=config["path"],
    )


def clear_session_cookie(response: Response) -> None:
    """Clear session cookie from response.

    Args:
        response: FastAPI response object.
    """
    config = get_session_cookie_config()
    response.delete_cookie(
        key=config["key"],
        path=config["path"],
    )


def set_oauth_verifier_cookie(response: Response, code_verifier: str) -> None:
    """Keep the PKCE code verifier until the provider redirects back."""
    settings = get_settings()
    response.set_cookie(
        key=settings.oauth_verifier_cookie_name,
        value=code_verifier,
        max_age=600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def pop_oauth_verifier_cookie(request: Request, response: Response) -> str | None:
    """Read the PKCE code verifier and schedule its removal."""
    name = get_settings().oauth_verifier_cookie_name
    response.delete_cookie(key=name, path="/")
    return request.cookies.get(name)
