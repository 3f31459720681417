"""
Auth endpoints - registration, login, profile and sign-in providers.
Challenge: Secure auth, validation, clear status codes.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from marketplace.config import SocialProvider, get_settings
from marketplace.core.dependencies import CurrentUser
from marketplace.core.security import create_access_token, hash_password, verify_password
from marketplace.db.models.user import User
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.db.session import DbSession
from marketplace.schemas.user import LoginRequest, ProfileUpdate, TokenResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(session: DbSession, data: UserCreate):
    """Create new user. Returns user without password."""
    repo = UserRepository(session)
    if await repo.get_by_email(data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    user = User(
        email=data.email,
        hashed_password=hash_password(data.password),
        display_name=data.display_name,
        preferred_language=data.preferred_language,
    )
    user = await repo.add(user)
    logger.info("Registered user %s", user.id)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(session: DbSession, data: LoginRequest):
    """Authenticate and return JWT."""
    repo = UserRepository(session)
    user = await repo.get_by_email(data.email)
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser):
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_me(session: DbSession, user: CurrentUser, data: ProfileUpdate):
    """Update display name, avatar or the language AI content is written in."""
    values = data.model_dump(exclude_unset=True)
    if values.get("display_name") is None:
        values.pop("display_name", None)
    if values.get("preferred_language") is None:
        values.pop("preferred_language", None)
    user = await UserRepository(session).update(user, **values)
    return UserResponse.model_validate(user)


@router.get("/providers", response_model=list[SocialProvider])
async def social_providers():
    """Enabled redirect-based sign-in providers."""
    return [p for p in get_settings().social_providers if p.enabled]
