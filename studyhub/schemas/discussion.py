"""
Pydantic schemas for answers and comments.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class _BodyIn(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body", mode="before")
    @classmethod
    def strip_body(cls, v):
        return v.strip() if isinstance(v, str) else v


class AnswerCreate(_BodyIn):
    pass


class CommentCreate(_BodyIn):
    body: str = Field(..., min_length=1, max_length=2000)


class _TalliedOut(BaseModel):
    id: str
    author_id: str
    body: str
    upvotes: int = 0
    downvotes: int = 0
    total_votes: int = 0
    user_vote: Optional[Literal["up", "down"]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AnswerOut(_TalliedOut):
    content_id: str


class CommentOut(_TalliedOut):
    answer_id: str
