"""API router aggregation."""
from fastapi import APIRouter

from socialsphere.api.endpoints import auth, users, posts

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
