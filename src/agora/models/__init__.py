"""SQLAlchemy models for the Agora application."""

from .answer import Answer, AnswerStatus
from .comment import Comment
from .notification import Notification, NotificationStatus, NotificationType
from .password_reset import PasswordResetToken
from .question import Difficulty, Question, QuestionStatus, question_tag
from .tag import Tag, TagStatus
from .user import User, UserRole, UserStatus
from .vote import Vote, VoteTargetType, VoteType

__all__ = [
    "Answer", "AnswerStatus",
    "Comment",
    "Notification", "NotificationStatus", "NotificationType",
    "PasswordResetToken",
    "Difficulty", "Question", "QuestionStatus", "question_tag",
    "Tag", "TagStatus",
    "User", "UserRole", "UserStatus",
    "Vote", "VoteTargetType", "VoteType",
]
