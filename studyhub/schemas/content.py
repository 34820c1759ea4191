"""
Pydantic schemas for moderated content.

Each content kind carries its own payload model; ``PAYLOAD_MODELS`` maps a
kind to the model used to validate submissions.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator


class SubjectCategory(str, Enum):
    SCIENCE = "science"
    MATHEMATICS = "mathematics"
    LANGUAGE = "language"
    SOCIAL = "social"
    ARTS = "arts"
    TECHNOLOGY = "technology"


class Language(str, Enum):
    SINHALA = "sinhala"
    TAMIL = "tamil"
    ENGLISH = "english"


class VideoCategory(str, Enum):
    LECTURE = "lecture"
    TUTORIAL = "tutorial"
    EXPLANATION = "explanation"
    EXERCISE = "exercise"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class FileMeta(BaseModel):
    """Declared metadata of a stored file. Only the reference is kept; bytes never pass through."""
    reference: str = Field(..., min_length=1, max_length=500)
    filename: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1, max_length=100)
    size: int = Field(..., ge=0)


class SubjectPayload(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    code: str = Field(..., min_length=3, max_length=20, pattern=r"^[A-Z0-9]+$")
    description: str = Field(..., min_length=10, max_length=500)
    grade: int = Field(..., ge=1, le=13)
    category: SubjectCategory
    language: Language
    # Past paper or syllabus attached to the subject
    paper: Optional[FileMeta] = None


class VideoPayload(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    subject_id: Optional[str] = None
    file: FileMeta
    duration_seconds: Optional[int] = Field(None, ge=0)
    category: VideoCategory = VideoCategory.LECTURE
    difficulty: Optional[Difficulty] = None
    tags: List[str] = Field(default_factory=list, max_length=20)


class ReferenceLinkPayload(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    url: HttpUrl
    description: Optional[str] = Field(None, max_length=2000)
    subject_id: Optional[str] = None
    # Optional study notes shipped with the link
    notes: Optional[FileMeta] = None


PAYLOAD_MODELS = {
    "subject": SubjectPayload,
    "video": VideoPayload,
    "reference_link": ReferenceLinkPayload,
}


class ContentCreate(BaseModel):
    """Schema for submitting content for moderation"""
    kind: Literal["subject", "video", "reference_link"]
    payload: Dict[str, Any]


class DecisionIn(BaseModel):
    """Administrator decision on a content item"""
    decision: Literal["approved", "rejected"]
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("reason", mode="before")
    @classmethod
    def blank_reason(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ContentOut(BaseModel):
    """Schema for content output"""
    id: str
    kind: str
    owner_id: str
    status: str
    payload: Dict[str, Any]
    moderator_id: Optional[str] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
