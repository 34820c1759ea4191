from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from studyhub.db.base import Base
from studyhub.models.user import _now, new_id


class ResetRequest(Base):
    """One-time code issued by the first step of the password reset flow."""
    __tablename__ = "reset_requests"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=True)
    email = Column(String(255), index=True, nullable=False)
    code_hash = Column(String(64), index=True, nullable=False)  # HMAC-SHA256 of the 6-digit code
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed = Column(Boolean, default=False, nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)


class ResetVerification(Base):
    """Short-lived proof that a code was verified; spent by the commit step."""
    __tablename__ = "reset_verifications"

    id = Column(String(64), primary_key=True, default=new_id)
    email = Column(String(255), index=True, nullable=False)
    request_id = Column(String(64), ForeignKey("reset_requests.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed = Column(Boolean, default=False, nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
