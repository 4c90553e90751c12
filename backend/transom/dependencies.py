from __future__ import annotations

import asyncio
import math
import time
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from transom.background.autosave import AutosaveController
from transom.config import settings
from transom.core.repositories.implementations.supabase.note_repository import (
    SupabaseNoteRepository,
)
from transom.core.repositories.implementations.supabase.profile_repository import (
    SupabaseProfileRepository,
)
from transom.core.repositories.implementations.supabase.project_repository import (
    SupabaseProjectRepository,
)
from transom.core.repositories.implementations.supabase.tag_repository import (
    SupabaseTagRepository,
)
from transom.core.schemas.auth import AuthUser
from transom.core.services.export_service import ExportService
from transom.core.services.note_service import NoteService
from transom.core.services.project_service import ProjectService
from transom.core.services.search_service import SearchService
from transom.core.services.tag_service import TagService
from transom.db.base import create_request_supabase_client
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from supabase import Client

    from transom.core.repositories.note_repository import NoteRepository
    from transom.core.repositories.profile_repository import ProfileRepository
    from transom.core.repositories.project_repository import ProjectRepository
    from transom.core.repositories.tag_repository import TagRepository

logger = get_logger(__name__)

# Missing tokens are reported by get_current_user, not by the scheme
http_bearer = HTTPBearer(auto_error=False)


class AttemptWindow:
    """Sliding-window counter of auth attempts per key, held in process memory."""

    def __init__(self, limit: int, window: float) -> None:
        self.limit = limit
        self.window = window
        self._attempts: dict[str, list[float]] = {}

    def hit(self, key: str, now: float | None = None) -> float | None:
        """Record an attempt. Returns seconds until retry when over the limit."""
        now = time.time() if now is None else now
        recent = [t for t in self._attempts.get(key, []) if t > now - self.window]
        if len(recent) >= self.limit:
            self._attempts[key] = recent
            return max(1.0, self.window - (now - recent[0]))
        recent.append(now)
        self._attempts[key] = recent
        return None

    def reset(self) -> None:
        self._attempts.clear()


auth_attempts = AttemptWindow(limit=settings.max_login_attempts, window=settings.login_attempt_window)

# Draft sessions outlive requests; one controller per process
_autosave_controller = AutosaveController(
    quiet_period=settings.autosave_quiet_period,
    idle_timeout=settings.autosave_idle_timeout,
)


def rate_limit_by_ip(request: Request, operation: str = "default") -> None:
    """Reject the request with 429 once the client IP exceeds its attempts for ``operation``."""
    if not settings.enable_rate_limiting:
        return
    client_ip = request.client.host if request.client else "unknown"
    retry_after = auth_attempts.hit(f"{operation}:{client_ip}")
    if retry_after is None:
        return

    logger.warning(f"Rate limited {operation} attempt", extra={"ip": client_ip})
    seconds = str(math.ceil(retry_after))
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many {operation} attempts. Please try again later.",
        headers={
            "Retry-After": seconds,
            "RateLimit-Limit": str(auth_attempts.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": seconds,
        },
    )


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def get_request_supabase_client(request: Request) -> Client:
    """Supabase client acting as the caller, so row level security applies."""
    return create_request_supabase_client(_bearer_token(request))


def get_note_repository(client: Client = Depends(get_request_supabase_client)) -> NoteRepository:
    """Get a request-scoped note repository instance using request client."""
    return SupabaseNoteRepository(client)


def get_tag_repository(client: Client = Depends(get_request_supabase_client)) -> TagRepository:
    return SupabaseTagRepository(client)


def get_project_repository(client: Client = Depends(get_request_supabase_client)) -> ProjectRepository:
    return SupabaseProjectRepository(client)


def get_profile_repository(client: Client = Depends(get_request_supabase_client)) -> ProfileRepository:
    return SupabaseProfileRepository(client)


def get_tag_service(repo: TagRepository = Depends(get_tag_repository)) -> TagService:
    return TagService(repo)


def get_note_service(
    repo: NoteRepository = Depends(get_note_repository),
    tags: TagService = Depends(get_tag_service),
) -> NoteService:
    """Get a request-scoped note service instance."""
    return NoteService(repo, tags)


def get_search_service(repo: NoteRepository = Depends(get_note_repository)) -> SearchService:
    """Get a request-scoped search service instance."""
    return SearchService(repo)


def get_project_service(
    repo: ProjectRepository = Depends(get_project_repository),
    notes: NoteRepository = Depends(get_note_repository),
) -> ProjectService:
    return ProjectService(repo, notes)


def get_export_service(
    notes: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
    projects: ProjectRepository = Depends(get_project_repository),
) -> ExportService:
    return ExportService(notes, tags, projects)


def get_autosave_controller() -> AutosaveController:
    return _autosave_controller


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser:
    """Resolve the bearer token to a user through Supabase auth."""
    if not credentials:
        raise _unauthorized("Authentication required")
    jwt = credentials.credentials
    if not jwt or jwt.count(".") != 2:
        raise _unauthorized("Invalid token format")

    supabase = create_request_supabase_client(jwt)
    try:
        resp = await asyncio.to_thread(lambda: supabase.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={"error_type": type(err).__name__, "error_summary": error_msg[:100]},
        )
        if "invalid" in error_msg or "expired" in error_msg:
            raise _unauthorized("Token is invalid or expired") from err
        raise _unauthorized("Authentication failed") from err

    user = getattr(resp, "user", None)
    if not user or not getattr(user, "id", None):
        raise _unauthorized("Invalid user data")
    metadata = getattr(user, "user_metadata", None) or {}
    return AuthUser(
        id=user.id,
        email=getattr(user, "email", None) or "",
        name=metadata.get("full_name") or metadata.get("name"),
        role=getattr(user, "role", None),
    )


def get_auth_service(
    client: Client = Depends(get_request_supabase_client),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    # Imported late: the auth service uses rate_limit_by_ip from this module
    from transom.core.services.auth_service import AuthService
    return AuthService(client, profiles)
