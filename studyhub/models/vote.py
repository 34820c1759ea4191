from sqlalchemy import CheckConstraint, Column, DateTime, String, UniqueConstraint

from studyhub.db.base import Base
from studyhub.models.user import _now


def vote_key(target_kind: str, target_id: str, voter_id: str) -> str:
    """Deterministic id, so the primary key enforces one vote per voter and target."""
    return f"{target_kind}:{target_id}:{voter_id}"


class Vote(Base):
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("voter_id", "target_id", "target_kind", name="uq_vote_voter_target"),
        CheckConstraint("direction IN ('up', 'down')", name="ck_vote_direction"),
        CheckConstraint("target_kind IN ('answer', 'comment')", name="ck_vote_target_kind"),
    )

    id = Column(String(200), primary_key=True)
    voter_id = Column(String(64), index=True, nullable=False)
    target_id = Column(String(64), index=True, nullable=False)
    target_kind = Column(String(16), nullable=False)
    direction = Column(String(8), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)
