"""API routes package."""

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

__all__ = [
    "advisors",
    "auth",
    "chat",
    "colleges",
    "feedback",
    "profile",
    "recommendations",
    "shared",
    "uploads",
]
