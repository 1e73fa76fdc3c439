import datetime

from sqlalchemy import Column, DateTime, Integer, String

from database.database import Base


class User(Base):
    """Directory entry for an authenticated user.

    Accounts are managed by the external auth service; this table is only
    read here, to resolve display names.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default="client")
    created_at = Column(
        DateTime, nullable=False, default=lambda: datetime.datetime.now(datetime.UTC)
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
