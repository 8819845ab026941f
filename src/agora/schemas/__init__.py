"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .answer import AnswerCreate, AnswerResponse, AnswerUpdate, CommentCreate, CommentResponse
from .common import MessageResponse, Pagination
from .notification import NotificationPayload, NotificationResponse
from .question import QuestionCreate, QuestionListResponse, QuestionResponse, QuestionUpdate
from .stats import CommunityStats, DashboardStats
from .tag import TagListResponse, TagResponse
from .user import (
    LoginRequest,
    PublicUserResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
    UserUpdate,
)
from .vote import MyVoteResponse, VoteCreate, VoteRevoke

__all__ = [
    "AnswerCreate", "AnswerResponse", "AnswerUpdate", "CommentCreate", "CommentResponse",
    "MessageResponse", "Pagination",
    "NotificationPayload", "NotificationResponse",
    "QuestionCreate", "QuestionListResponse", "QuestionResponse", "QuestionUpdate",
    "CommunityStats", "DashboardStats",
    "TagListResponse", "TagResponse",
    "LoginRequest", "PublicUserResponse", "RegisterRequest", "TokenResponse",
    "UserResponse", "UserUpdate",
    "MyVoteResponse", "VoteCreate", "VoteRevoke",
]
