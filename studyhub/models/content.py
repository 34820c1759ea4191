from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from studyhub.db.base import Base
from studyhub.models.user import _now, new_id


class Content(Base):
    """
    User-submitted study material under moderation.

    ``kind`` is one of subject, video or reference_link; ``payload`` holds the
    kind-specific fields (title, file reference, url, ...).
    """
    __tablename__ = "content"

    id = Column(String(64), primary_key=True, default=new_id)
    kind = Column(String(32), index=True, nullable=False)
    owner_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    status = Column(String(16), index=True, default="pending", nullable=False)
    payload = Column(JSON, default=dict, nullable=False)
    moderator_id = Column(String(64), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)
