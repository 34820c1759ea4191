from studyhub.models.user import User
from studyhub.models.password_reset import ResetRequest, ResetVerification
from studyhub.models.content import Content
from studyhub.models.discussion import Answer, Comment
from studyhub.models.vote import Vote
from studyhub.models.chat import ChatMessage

__all__ = [
    "User",
    "ResetRequest",
    "ResetVerification",
    "Content",
    "Answer",
    "Comment",
    "Vote",
    "ChatMessage",
]
