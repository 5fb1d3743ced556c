"""SocialSphere API - FastAPI application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from socialsphere.api.api import api_router
from socialsphere.core.config import settings
from socialsphere.core.exceptions import register_exception_handlers
from socialsphere.core.logging import configure_logging
from socialsphere.db.session import engine

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def database_status() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database check failed: %s", exc)
        return "disconnected"
    return "connected"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_CREATE_ALL:
        from socialsphere.db.base import Base

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")
    if await database_status() == "connected":
        logger.info("Database: OK")
    else:
        logger.warning("Database connection failed, requests will get 503 until it is reachable")
    logger.info("API: /api | Docs: /docs | Health: /api/health")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(api_router, prefix="/api")

# Serve uploaded images: uploads/{avatars,posts}/...
uploads_dir = Path(settings.UPLOAD_DIR).resolve()
uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")


@app.get("/")
async def root():
    return {
        "message": "SocialSphere Backend API",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "posts": "/api/posts",
            "health": "/api/health",
        },
    }


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


@app.get("/api/health")
async def health():
    """Liveness plus database reachability; 503 when the database is down."""
    database = await database_status()
    body = {
        "status": "OK" if database == "connected" else "error",
        "message": "SocialSphere API is running",
        "environment": settings.ENVIRONMENT,
        "database": database,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=200 if database == "connected" else 503, content=body)
