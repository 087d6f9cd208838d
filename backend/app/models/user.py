"""
User identity row. Accounts are managed by the auth service; inscriptions and
events reference users by id.
"""

from sqlalchemy import Column, Integer, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

USER_ROLES = ("user", "organizer", "moderator", "admin", "super_admin")


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, default=True, nullable=False)

    inscriptions = relationship("Inscription", back_populates="user", lazy="noload")

    __table_args__ = (
        CheckConstraint(
            f"role IN ({', '.join(repr(r) for r in USER_ROLES)})",
            name="check_user_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
