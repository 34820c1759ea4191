"""
Pydantic schemas for votes on answers and comments.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class VoteIn(BaseModel):
    target_id: str = Field(..., min_length=1, max_length=64)
    target_kind: Literal["answer", "comment"]
    direction: Literal["up", "down"]


class TallyOut(BaseModel):
    upvotes: int
    downvotes: int
    total_votes: int
    user_vote: Optional[Literal["up", "down"]] = None
