"""API dependencies: auth, db session, storage, pagination."""
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from socialsphere.core.exceptions import AuthenticationError
from socialsphere.core.security import decode_token
from socialsphere.db.session import get_db
from socialsphere.models.user import User
from socialsphere.services.auth_service import get_user_by_id
from socialsphere.services.storage_service import StorageBackend, get_storage

__all__ = ["get_db", "get_storage", "StorageBackend", "Pagination", "get_current_user", "get_current_user_optional"]

security = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User | None:
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        return None
    sub = payload.get("sub")
    try:
        user_id = UUID(sub)
    except (TypeError, ValueError):
        return None
    return await get_user_by_id(db, user_id)


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    if not credentials:
        return None
    return await _user_from_token(db, credentials.credentials)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not credentials:
        raise AuthenticationError("No token, authorization denied")
    user = await _user_from_token(db, credentials.credentials)
    if user is None:
        raise AuthenticationError("Token is not valid")
    return user


@dataclass
class Pagination:
    page: int = Query(1, ge=1)
    limit: int = Query(10, ge=1, le=50)
