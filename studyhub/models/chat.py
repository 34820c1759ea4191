from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from studyhub.db.base import Base
from studyhub.models.user import _now, new_id


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(64), primary_key=True, default=new_id)
    subject_id = Column(String(64), ForeignKey("content.id", ondelete="CASCADE"), index=True, nullable=False)
    sender_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    # Username at send time
    sender_name = Column(String(50), nullable=False)
    text = Column(Text, nullable=False)
    message_type = Column(String(16), default="text", nullable=False)
    reply_to = Column(String(64), ForeignKey("chat_messages.id", ondelete="SET NULL"), nullable=True)
    # Soft delete; the row stays so replies keep their reference
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)
