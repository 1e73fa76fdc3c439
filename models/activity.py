import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database.database import Base
from models.user import User


class CaseActivity(Base):
    """Append-only audit entry. Rows are never updated or deleted directly."""

    __tablename__ = "case_activities"

    id = Column(Integer, primary_key=True, index=True)
    case_id = Column(
        Integer,
        ForeignKey("cases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey(User.id), nullable=True)
    activity_type = Column(String(40), nullable=False)
    description = Column(Text, nullable=False)
    created_at = Column(
        DateTime, nullable=False, default=lambda: datetime.datetime.now(datetime.UTC)
    )

    case = relationship("Case", back_populates="activities")
    user = relationship("User")

    @property
    def user_name(self):
        return self.user.full_name if self.user else None
