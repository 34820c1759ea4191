from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from studyhub.db.base import Base
from studyhub.models.user import _now, new_id


class Answer(Base):
    __tablename__ = "answers"

    id = Column(String(64), primary_key=True, default=new_id)
    content_id = Column(String(64), ForeignKey("content.id", ondelete="CASCADE"), index=True, nullable=False)
    author_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    body = Column(Text, nullable=False)
    # Tally, kept equal to the Vote rows for this answer
    upvotes = Column(Integer, default=0, nullable=False)
    downvotes = Column(Integer, default=0, nullable=False)
    total_votes = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(64), primary_key=True, default=new_id)
    answer_id = Column(String(64), ForeignKey("answers.id", ondelete="CASCADE"), index=True, nullable=False)
    author_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    body = Column(Text, nullable=False)
    upvotes = Column(Integer, default=0, nullable=False)
    downvotes = Column(Integer, default=0, nullable=False)
    total_votes = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)
