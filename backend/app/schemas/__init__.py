"""Pydantic schemas for API request/response validation."""

from app.schemas.user import OnboardingAnswers, UserRead
from app.schemas.auth import LoginRequest, RegisterRequest
from app.schemas.colleges import CollegeCreate, CollegeRead
from app.schemas.advisors import AdvisorCreate, AdvisorRead, SharedProfileRead
from app.schemas.recommendations import RecommendationRead
from app.schemas.chat import ChatMessageRead, ChatSessionRead, SendMessageRequest, SendMessageResponse
from app.schemas.feedback import FeedbackCreate, FeedbackRead
from app.schemas.uploads import AttachmentRecord

__all__ = [
    # User
    "OnboardingAnswers",
    "UserRead",
    # Auth
    "LoginRequest",
    "RegisterRequest",
    # Colleges
    "CollegeCreate",
    "CollegeRead",
    # Advisors
    "AdvisorCreate",
    "AdvisorRead",
    "SharedProfileRead",
    # Recommendations
    "RecommendationRead",
    # Chat
    "ChatMessageRead",
    "ChatSessionRead",
    "SendMessageRequest",
    "SendMessageResponse",
    # Feedback
    "FeedbackCreate",
    "FeedbackRead",
    # Uploads
    "AttachmentRecord",
]
