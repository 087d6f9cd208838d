"""
Inscription: a user's registration for an event.

Key design decisions:
- Opaque string ids (uuid4 hex), never derived from user/event ids
- Partial unique index allows at most one non-cancelled inscription per
  (user, event); cancelled rows do not block re-registering
- Only `confirmed` inscriptions are counted in eventos.current_participants
"""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class InscriptionStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    WAITLIST = "waitlist"
    CANCELLED = "cancelled"


def new_inscription_id() -> str:
    return uuid.uuid4().hex


class Inscription(Base, TimestampMixin):
    __tablename__ = "inscripciones"

    id = Column(String(32), primary_key=True, default=new_inscription_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("eventos.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=InscriptionStatus.CONFIRMED.value)
    notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="inscriptions")
    event = relationship("Event", back_populates="inscriptions")

    __table_args__ = (
        CheckConstraint(
            "status IN ('confirmed', 'waitlist', 'cancelled')",
            name="check_inscripcion_status",
        ),
        Index(
            "uq_inscripciones_active_user_event",
            "user_id",
            "event_id",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    @property
    def counts_toward_capacity(self) -> bool:
        return self.status == InscriptionStatus.CONFIRMED.value

    def __repr__(self) -> str:
        return f"<Inscription(id={self.id}, user={self.user_id}, event={self.event_id}, status={self.status})>"
