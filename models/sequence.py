from sqlalchemy import Column, Integer, String

from database.database import Base


class SequenceCounter(Base):
    """Last value handed out for one numbering scope.

    ``scope`` is ``"case"`` (keyed by year) or ``"session"`` (keyed by case id).
    """

    __tablename__ = "sequence_counters"

    scope = Column(String(20), primary_key=True)
    key = Column(String(40), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
