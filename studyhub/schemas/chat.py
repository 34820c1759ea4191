"""
Pydantic schemas for subject chat.
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

MESSAGE_MAX_LENGTH = 1000


class _TextIn(BaseModel):
    text: str = Field(..., min_length=1, max_length=MESSAGE_MAX_LENGTH)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class ChatMessageCreate(_TextIn):
    message_type: Literal["text", "image", "file"] = "text"


class ChatReplyIn(_TextIn):
    pass


class ChatMessageOut(BaseModel):
    id: str
    subject_id: str
    sender_id: str
    sender_name: str
    text: str
    message_type: str
    reply_to: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatHistoryOut(BaseModel):
    messages: List[ChatMessageOut]
    total_messages: int


class ParticipantOut(BaseModel):
    user_id: str
    username: str
    message_count: int
    last_message_at: datetime
