import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database.database import Base
from models.user import User

DEFAULT_DURATION_MINUTES = 60
MIN_DURATION_MINUTES = 15
DEFAULT_LOCATION = "Online"
COMPLETED_STATUS = "completed"


def _utcnow():
    return datetime.datetime.now(datetime.UTC)


class Session(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        UniqueConstraint("case_id", "session_number", name="uq_sessions_case_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    case_id = Column(
        Integer,
        ForeignKey("cases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_number = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    scheduled_date = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    status = Column(String, nullable=False, default="scheduled")
    location = Column(String, nullable=True, default=DEFAULT_LOCATION)
    meeting_link = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    # Relationship back to Case
    case = relationship("Case", back_populates="sessions")

    participants = relationship(
        "SessionParticipant",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SessionParticipant.id",
    )


class SessionParticipant(Base):
    __tablename__ = "session_participants"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey(User.id), nullable=False)
    attendance_status = Column(String, nullable=False, default="invited")

    session = relationship("Session", back_populates="participants")
    user = relationship("User")

    @property
    def name(self):
        return self.user.full_name if self.user else None
