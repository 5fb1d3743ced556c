"""Auth endpoints: register, login, me."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialsphere.api.deps import get_current_user, get_db
from socialsphere.models.user import User
from socialsphere.schemas.user import LoginRequest, Token, UserCreate, UserResponse
from socialsphere.services.auth_service import (
    authenticate_user,
    create_token_for_user,
    create_user,
    user_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Register attempt: %s %s", data.username, data.email)
    user = await create_user(db, data)
    await db.commit()
    logger.info("Register success: %s %s", user.id, user.username)
    return Token(
        token=create_token_for_user(user),
        user=user_to_response(user, include_email=True),
    )


@router.post("/login", response_model=Token)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt: %s", data.identifier)
    user = await authenticate_user(db, data.identifier, data.password)
    logger.info("Login success: %s %s", user.id, user.username)
    return Token(
        token=create_token_for_user(user),
        user=user_to_response(user, include_email=True),
    )


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return user_to_response(current_user, include_email=True)
