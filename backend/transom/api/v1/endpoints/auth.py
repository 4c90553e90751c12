from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from transom.api.v1.schemas.auth import (
    AuthResponse,
    OAuthCallbackRequest,
    OAuthStartResponse,
    SignInRequest,
    SignUpRequest,
)
from transom.core.models.user import UserProfile
from transom.dependencies import get_auth_service, get_current_user
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from transom.core.schemas.auth import AuthUser
    from transom.core.services.auth_service import AuthService

logger = get_logger(__name__)

router = APIRouter(
    responses={
        401: {"description": "Unauthorized"},
        429: {"description": "Too many attempts"},
    }
)


async def _run_auth_call(
    call: Awaitable[Any],
    *,
    action: str,
    rejected_status: int = status.HTTP_400_BAD_REQUEST,
) -> Any:
    """Await an auth service call and map its failures to HTTP errors.

    ValueError carries a message meant for the sign-in form and is passed
    through with ``rejected_status``; rate limiting arrives as HTTPException.
    """
    try:
        return await call
    except HTTPException:
        raise
    except ValueError as err:
        raise HTTPException(status_code=rejected_status, detail=str(err)) from err
    except Exception as err:
        logger.error(f"Unexpected error during {action}", extra={"error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err


@router.post("/signup", response_model=AuthResponse)
async def sign_up(
    request: Request,
    payload: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create an account with email, password and an optional display name."""
    return await _run_auth_call(auth_service.sign_up(request, payload), action="signup")


@router.post("/signin", response_model=AuthResponse)
async def sign_in(
    request: Request,
    payload: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    return await _run_auth_call(auth_service.sign_in(request, payload), action="signin")


@router.get("/oauth/google", response_model=OAuthStartResponse)
async def start_google_sign_in(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Return the Google consent URL the browser should be sent to."""
    return await _run_auth_call(auth_service.sign_in_with_oauth(request), action="oauth start")


@router.post("/callback", response_model=AuthResponse)
async def oauth_callback(
    payload: OAuthCallbackRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange the code from the OAuth redirect for a session."""
    return await _run_auth_call(
        auth_service.exchange_code_for_session(payload),
        action="oauth callback",
        rejected_status=status.HTTP_401_UNAUTHORIZED,
    )


@router.post("/signout")
async def sign_out(
    current_user: AuthUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    # The service logs provider failures; the client clears its session regardless
    return await auth_service.sign_out(current_user)


@router.get("/validate")
async def validate_token(current_user: AuthUser = Depends(get_current_user)):
    """Identity behind the bearer token."""
    return current_user.model_dump(include={"id", "email", "name", "role"})


@router.get("/me", response_model=UserProfile)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Stored profile of the signed-in user, with display initials."""
    return await _run_auth_call(auth_service.get_profile(current_user), action="profile lookup")


@router.get("/session")
async def get_session(auth_service: AuthService = Depends(get_auth_service)):
    return await _run_auth_call(
        auth_service.get_session(),
        action="session lookup",
        rejected_status=status.HTTP_401_UNAUTHORIZED,
    )


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    return await _run_auth_call(auth_service.refresh_token(request), action="token refresh")
