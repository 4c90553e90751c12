from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from uuid import UUID

from transom.api.v1.schemas.auth import (
    AuthResponse,
    OAuthCallbackRequest,
    OAuthStartResponse,
    SignInRequest,
    SignUpRequest,
)
from transom.config import settings
from transom.core.models.user import UserProfile
from transom.dependencies import rate_limit_by_ip
from transom.utils.logging import get_logger
from transom.utils.validation import validate_password_strength

if TYPE_CHECKING:
    from fastapi import Request

    from transom.core.repositories.profile_repository import ProfileRepository
    from transom.core.schemas.auth import AuthUser


logger = get_logger(__name__)

OAUTH_PROVIDER = "google"

AUTH_ERROR_MESSAGES: dict[str, str] = {
    "invalid_credentials": "Invalid email or password",
    "user_already_exists": "An account with this email already exists",
    "email_exists": "An account with this email already exists",
    "weak_password": "Password does not meet security requirements",
    "email_not_confirmed": "Please confirm your email address before signing in",
    "over_request_rate_limit": "Too many attempts. Please try again later.",
    "signup_disabled": "Signups are disabled. Please request an invite from support.",
    "validation_failed": "Please check the email address and password you entered",
}

# Older auth servers omit the error code
_AUTH_ERROR_PHRASES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("invalid login credentials", "invalid email or password"), "invalid_credentials"),
    (("already registered", "already exists"), "user_already_exists"),
    (("weak password", "password should be"), "weak_password"),
    (("email not confirmed",), "email_not_confirmed"),
    (("too many requests", "rate limit"), "over_request_rate_limit"),
    (("signup disabled", "signups disabled", "signups not allowed", "signup not allowed"), "signup_disabled"),
    (("invalid email", "unable to validate email"), "validation_failed"),
)


def describe_auth_error(err: Exception, fallback: str) -> str:
    """Human readable message for an auth provider error."""
    code = getattr(err, "code", None)
    if isinstance(code, str) and code in AUTH_ERROR_MESSAGES:
        return AUTH_ERROR_MESSAGES[code]

    error_msg = str(err).lower()
    for phrases, mapped_code in _AUTH_ERROR_PHRASES:
        if any(phrase in error_msg for phrase in phrases):
            return AUTH_ERROR_MESSAGES[mapped_code]
    return fallback


def _user_name(user: Any) -> str | None:
    metadata = getattr(user, "user_metadata", None) or {}
    return metadata.get("full_name") or metadata.get("name")


def _refresh_token_from_header(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


class AuthService:
    """Authentication service handling business logic for auth operations."""

    def __init__(self, supabase_client: Any, profiles: ProfileRepository):
        self.supabase = supabase_client
        self._profiles = profiles

    async def _sync_profile(self, user: Any, name: str | None = None) -> UserProfile:
        profile = UserProfile.from_identity(
            user_id=UUID(str(user.id)),
            email=getattr(user, "email", None),
            name=name or _user_name(user),
        )
        try:
            return await self._profiles.upsert(profile)
        except Exception as err:
            # The session is valid without a stored profile
            logger.warning(
                "Profile upsert failed",
                extra={"user_id": str(profile.id), "error_type": type(err).__name__},
            )
            return profile

    def _auth_response(self, resp: Any, profile: UserProfile) -> AuthResponse:
        return AuthResponse(
            access_token=resp.session.access_token,
            token_type="bearer",
            expires_in=resp.session.expires_in,
            refresh_token=resp.session.refresh_token,
            user={
                "id": str(resp.user.id),
                "email": resp.user.email or "",
                "name": profile.name,
                "initials": profile.initials,
            },
        )

    async def sign_up(self, request: Request, payload: SignUpRequest) -> AuthResponse:
        """Handle user signup with business logic."""
        rate_limit_by_ip(request, "signup")

        is_valid_password, password_error = validate_password_strength(payload.password, payload.email)
        if not is_valid_password:
            raise ValueError(password_error)

        email = payload.email.lower().strip()
        password = payload.password
        name = (payload.name or "").strip() or None

        credentials: dict[str, Any] = {"email": email, "password": password}
        if name:
            credentials["options"] = {"data": {"full_name": name}}

        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.sign_up(credentials))
        except Exception as err:
            error_msg = str(err).lower()
            logger.warning(
                "Sign up failed",
                extra={
                    "email": email,
                    "error_type": type(err).__name__,
                    "error_code": getattr(err, "code", None),
                    "error_summary": error_msg[:100] if error_msg else "Unknown error",
                },
            )
            raise ValueError(describe_auth_error(err, "Failed to create account. Please try again.")) from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Account created but session not established. Please confirm your email or sign in.")

        profile = await self._sync_profile(resp.user, name)
        logger.info("User signed up successfully", extra={"email": resp.user.email or "", "user_id": str(resp.user.id)})
        return self._auth_response(resp, profile)

    async def sign_in(self, request: Request, payload: SignInRequest) -> AuthResponse:
        """Handle user signin with business logic."""
        rate_limit_by_ip(request, "signin")

        email = payload.email.lower().strip()
        password = payload.password

        if not email or not password:
            raise ValueError("Email and password are required")

        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.sign_in_with_password({
                    "email": email,
                    "password": password,
                })
            )
        except Exception as err:
            error_msg = str(err).lower()
            logger.warning(
                "Sign in failed",
                extra={
                    "email": email,
                    "error_type": type(err).__name__,
                    "error_code": getattr(err, "code", None),
                    "error_summary": error_msg[:100] if error_msg else "Unknown error",
                },
            )
            raise ValueError(describe_auth_error(err, "Authentication service error. Please try again.")) from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Invalid email or password")

        profile = await self._sync_profile(resp.user)
        logger.info("User signed in successfully", extra={"email": resp.user.email or "", "user_id": str(resp.user.id)})
        return self._auth_response(resp, profile)

    async def sign_in_with_oauth(self, request: Request) -> OAuthStartResponse:
        """Start a Google sign-in and return the provider URL to redirect to."""
        rate_limit_by_ip(request, "oauth")

        credentials: dict[str, Any] = {"provider": OAUTH_PROVIDER}
        if settings.oauth_redirect_url:
            credentials["options"] = {"redirect_to": settings.oauth_redirect_url}

        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.sign_in_with_oauth(credentials))
        except Exception as err:
            logger.warning("OAuth start failed", extra={"error_type": type(err).__name__})
            raise ValueError(describe_auth_error(err, "Could not start Google sign-in. Please try again.")) from err

        url = getattr(resp, "url", None)
        if not url:
            raise ValueError("Could not start Google sign-in. Please try again.")
        return OAuthStartResponse(provider=OAUTH_PROVIDER, url=url)

    async def exchange_code_for_session(self, payload: OAuthCallbackRequest) -> AuthResponse:
        """Finish an OAuth sign-in and make sure the user's profile exists."""
        params: dict[str, Any] = {"auth_code": payload.code}
        if payload.code_verifier:
            params["code_verifier"] = payload.code_verifier
        if settings.oauth_redirect_url:
            params["redirect_to"] = settings.oauth_redirect_url

        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.exchange_code_for_session(params))
        except Exception as err:
            error_msg = str(err).lower()
            logger.warning(
                "OAuth code exchange failed",
                extra={"error_type": type(err).__name__, "error_summary": error_msg[:100]},
            )
            raise ValueError(describe_auth_error(err, "Sign-in link is invalid or has expired")) from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Sign-in link is invalid or has expired")

        profile = await self._sync_profile(resp.user)
        logger.info("User signed in with OAuth", extra={"user_id": str(resp.user.id)})
        return self._auth_response(resp, profile)

    async def sign_out(self, current_user: AuthUser) -> dict[str, str]:
        """Handle user signout with business logic."""
        try:
            await asyncio.to_thread(lambda: self.supabase.auth.sign_out())
            logger.info("User signed out successfully", extra={"user_id": str(current_user.id)})
        except Exception as err:
            logger.warning("Sign out failed", extra={"error": str(err), "user_id": str(current_user.id)})
        return {"message": "Signed out successfully"}

    async def get_profile(self, current_user: AuthUser) -> UserProfile:
        """Stored profile of the user, created from the identity when missing."""
        profile = await self._profiles.get(current_user.id)
        if profile:
            return profile
        return await self._profiles.upsert(
            UserProfile.from_identity(user_id=current_user.id, email=current_user.email, name=current_user.name)
        )

    async def get_session(self) -> dict[str, Any]:
        """Session currently held by the request's auth client."""
        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.get_session())
        except Exception as err:
            logger.warning("Session retrieval failed", extra={"error": str(err)[:100]})
            raise ValueError("Failed to retrieve session") from err

        session = getattr(resp, "session", None)
        user = getattr(resp, "user", None)
        if not session or not user:
            raise ValueError("No valid session found")
        return {
            "user": {"id": str(user.id), "email": user.email or "", "name": _user_name(user)},
            "session": {
                "access_token": session.access_token,
                "refresh_token": session.refresh_token,
                "expires_in": session.expires_in,
                "expires_at": session.expires_at,
            },
        }

    async def refresh_token(self, request: Request) -> AuthResponse:
        """Trade a refresh token, from the bearer header or the JSON body, for a new session."""
        token = _refresh_token_from_header(request)
        if not token:
            try:
                body = await request.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                token = body.get("refresh_token")
        if not token:
            raise ValueError("Refresh token is required")

        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.refresh_session(token))
        except Exception as err:
            error_msg = str(err).lower()
            logger.warning("Token refresh failed", extra={"error": error_msg[:100]})
            expired = "invalid" in error_msg or "expired" in error_msg
            raise ValueError("Invalid or expired refresh token" if expired else "Failed to refresh token") from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Invalid refresh token")

        # No profile round trip on refresh; the identity carries the name
        profile = UserProfile.from_identity(
            user_id=UUID(str(resp.user.id)), email=resp.user.email, name=_user_name(resp.user)
        )
        return self._auth_response(resp, profile)
