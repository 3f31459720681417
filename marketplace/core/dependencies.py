"""
FastAPI dependencies - injection for DB, auth and pipeline collaborators (SOLID: Dependency Inversion).
Challenge: Reusable auth, consistent error responses, swappable storage/feed/model in tests.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace.ai.generator import ContentGenerator, get_content_generator
from marketplace.core.security import decode_access_token
from marketplace.db.models.user import User
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.db.session import DbSession
from marketplace.realtime.feed import ChangeFeed, get_change_feed
from marketplace.services.listing_wizard import UserContext
from marketplace.services.processing_jobs import BackgroundJobRunner, get_background_runner
from marketplace.storage.object_storage import ObjectStorage, get_object_storage

security = HTTPBearer(auto_error=False)


async def get_current_user(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> User:
    """Resolve JWT to the active user. Raises 401 if missing or invalid."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    repo = UserRepository(session)
    user = await repo.get_by_id(payload["sub"])
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_current_user_id(user: CurrentUser) -> str:
    return user.id


async def get_user_context(user: CurrentUser) -> UserContext:
    """Acting user plus the language AI content should be written in."""
    return UserContext(user_id=user.id, language=user.preferred_language or "en")


# Optional auth: for routes that behave differently when logged in
async def get_optional_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str | None:
    """Return user id if valid token present, else None."""
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        return None
    return payload["sub"]


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
OptionalUserId = Annotated[str | None, Depends(get_optional_user_id)]
CurrentUserContext = Annotated[UserContext, Depends(get_user_context)]

Storage = Annotated[ObjectStorage, Depends(get_object_storage)]
Feed = Annotated[ChangeFeed, Depends(get_change_feed)]
Generator = Annotated[ContentGenerator, Depends(get_content_generator)]
Runner = Annotated[BackgroundJobRunner, Depends(get_background_runner)]
