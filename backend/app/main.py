"""
College Wayfarer FastAPI Application Entry Point.

Run with: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.db.session import dispose_engine
from app.errors import register_exception_handlers
from app.api.routes import (
    advisors,
    auth,
    chat,
    colleges,
    feedback,
    profile,
    recommendations,
    shared,
    uploads,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; AI features will return configuration errors")
    logger.info("%s starting (environment=%s)", settings.app_name, settings.environment)
    yield
    # Shutdown
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    description="College application planning API with an AI counselor",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(profile.router, prefix=API_PREFIX)
app.include_router(colleges.router, prefix=API_PREFIX)
app.include_router(advisors.router, prefix=API_PREFIX)
app.include_router(shared.router, prefix=API_PREFIX)
app.include_router(recommendations.router, prefix=API_PREFIX)
app.include_router(chat.router, prefix=API_PREFIX)
app.include_router(feedback.router, prefix=API_PREFIX)
app.include_router(uploads.router, prefix=API_PREFIX)
app.include_router(uploads.files_router)


@app.get("/health")
@app.get(f"{API_PREFIX}/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
