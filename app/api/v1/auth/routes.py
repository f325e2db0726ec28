"""Authentication API endpoints."""

import logging
import secrets

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.auth.constants import (
    EMAIL_TAKEN_DETAIL,
    INACTIVE_USER_DETAIL,
    INVALID_CREDENTIALS_DETAIL,
    INVALID_REFRESH_DETAIL,
    OWNER_ROLE,
)
from app.core.exceptions import InvalidTokenError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_refresh_token,
)
from app.dependencies import CurrentUser, DbSession
from app.models.organization import Organization
from app.models.user import User
from app.schemas.auth import (
    CurrentUserResponse,
    Token,
    TokenRefresh,
    UserCreate,
    UserLogin,
    UserResponse,
)
from app.services.content_text import slugify

logger = logging.getLogger(__name__)

router = APIRouter()


async def _available_org_slug(session: AsyncSession, name: str) -> str:
    base = slugify(name) or "organization"
    slug = base
    while (
        await session.execute(select(Organization.id).where(Organization.slug == slug))
    ).scalar_one_or_none() is not None:
        slug = f"{base}-{secrets.token_hex(3)}"
    return slug


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, session: DbSession) -> User:
    """Register a new user together with the organization they will own."""
    logger.info("User registration attempt", extra={"email": user_data.email})

    result = await session.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("Registration failed: email exists", extra={"email": user_data.email})
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=EMAIL_TAKEN_DETAIL,
        )

    org_name = (user_data.organization_name or "").strip() or user_data.email
    organization = Organization(
        name=org_name,
        slug=await _available_org_slug(session, org_name),
        settings={},
    )
    session.add(organization)
    await session.flush()

    user = User(
        org_id=organization.id,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        role=OWNER_ROLE,
        permissions={},
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)

    logger.info(
        "User registered",
        extra={"user_id": user.id, "org_id": organization.id, "email": user.email},
    )

    return user


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, session: DbSession) -> Token:
    """Login and get access/refresh tokens."""
    logger.info("Login attempt", extra={"email": credentials.email})

    result = await session.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if (
        not user
        or not user.hashed_password
        or not verify_password(credentials.password, user.hashed_password)
    ):
        logger.warning("Login failed: invalid credentials", extra={"email": credentials.email})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning("Login failed: inactive user", extra={"email": credentials.email})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=INACTIVE_USER_DETAIL,
        )

    claims = {"org_id": user.org_id, "role": user.role}
    access_token = create_access_token(subject=user.id, extra_claims=claims)
    refresh_token = create_refresh_token(subject=user.id)

    logger.info("Login successful", extra={"user_id": user.id})

    return Token(access_token=access_token, refresh_token=refresh_token)


@router.post("/refresh", response_model=Token)
async def refresh_token(token_data: TokenRefresh, session: DbSession) -> Token:
    """Refresh access token using refresh token."""
    try:
        user_id = verify_refresh_token(token_data.refresh_token)
    except InvalidTokenError as exc:
        logger.warning("Token refresh failed: invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_REFRESH_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or deactivated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = {"org_id": user.org_id, "role": user.role}
    access_token = create_access_token(subject=user.id, extra_claims=claims)
    new_refresh_token = create_refresh_token(subject=user.id)

    return Token(access_token=access_token, refresh_token=new_refresh_token)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(current_user: CurrentUser) -> CurrentUserResponse:
    """Get current user information."""
    return CurrentUserResponse(
        user_id=current_user.id,
        email=current_user.email,
        org_id=current_user.org_id,
        role=current_user.role,
        full_name=current_user.full_name,
    )
