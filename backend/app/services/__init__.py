"""Domain services and external integrations."""

from app.services.s3 import attachment_storage
from app.services.llm_client import llm_client
from app.services.profile_manager import profile_manager
from app.services.chat_service import chat_service

__all__ = ["attachment_storage", "llm_client", "profile_manager", "chat_service"]
