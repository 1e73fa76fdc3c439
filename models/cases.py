import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database.database import Base
from models.user import User

RESOLVED_STATUSES = ("resolved", "closed")


def _utcnow():
    return datetime.datetime.now(datetime.UTC)


class Case(Base):
    __tablename__ = "cases"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    case_number = Column(String(20), nullable=False, unique=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    priority = Column(String(10), nullable=False, default="medium")
    status = Column(String(10), nullable=False, default="pending")
    created_by = Column(Integer, ForeignKey(User.id), nullable=False)
    assigned_mediator = Column(Integer, ForeignKey(User.id), nullable=True)
    resolution_summary = Column(Text, nullable=True)
    resolution_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    mediator = relationship("User", foreign_keys=[assigned_mediator])

    # One-to-many: Case -> CaseParty
    parties = relationship(
        "CaseParty",
        back_populates="case",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # One-to-many: Case -> Session (mediation meetings under this case)
    sessions = relationship(
        "Session",
        back_populates="case",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Audit trail goes with the case
    activities = relationship(
        "CaseActivity",
        back_populates="case",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def creator_name(self):
        return self.creator.full_name if self.creator else None

    @property
    def creator_email(self):
        return self.creator.email if self.creator else None

    @property
    def mediator_name(self):
        return self.mediator.full_name if self.mediator else None

    @property
    def mediator_email(self):
        return self.mediator.email if self.mediator else None


class CaseParty(Base):
    __tablename__ = "case_parties"

    id = Column(Integer, primary_key=True, index=True)
    case_id = Column(
        Integer,
        ForeignKey("cases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey(User.id), nullable=False)
    party_type = Column(String(20), nullable=False)
    organization = Column(String, nullable=True)
    representative = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    case = relationship("Case", back_populates="parties")
    user = relationship("User")

    @property
    def first_name(self):
        return self.user.first_name if self.user else None

    @property
    def last_name(self):
        return self.user.last_name if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def phone(self):
        return self.user.phone if self.user else None
