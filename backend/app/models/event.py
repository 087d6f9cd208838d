"""
Event model with participant counter.

Key design decisions:
- `current_participants` is denormalized (avoids COUNT over inscripciones on
  every listing). It is only ever changed with single conditional UPDATE
  statements, never read-modify-write from application code.
- CHECK constraint keeps the counter non-negative at the storage level.
- Composite index on (status, type) serves the filtered listing endpoint.
"""

import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class EventType(str, enum.Enum):
    ENCUENTRO = "encuentro"
    TALLER = "taller"
    WEBINAR = "webinar"
    COMPETENCIA = "competencia"


class Event(Base, TimestampMixin):
    __tablename__ = "eventos"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    type = Column(String(20), nullable=False, default=EventType.ENCUENTRO.value)
    status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value)
    registration_open = Column(Boolean, nullable=False, default=True)
    max_participants = Column(Integer, nullable=True)
    current_participants = Column(Integer, nullable=False, default=0)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    inscriptions = relationship("Inscription", back_populates="event", lazy="noload")

    __table_args__ = (
        CheckConstraint("current_participants >= 0", name="check_current_participants_non_negative"),
        CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="check_max_participants_positive",
        ),
        CheckConstraint(
            "status IN ('draft', 'published', 'cancelled', 'completed')",
            name="check_evento_status",
        ),
        Index("ix_eventos_status_type", "status", "type"),
        Index("ix_eventos_created_at", "created_at"),
    )

    @property
    def is_full(self) -> bool:
        return self.max_participants is not None and self.current_participants >= self.max_participants

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, title={self.title}, "
            f"participants={self.current_participants}/{self.max_participants})>"
        )
