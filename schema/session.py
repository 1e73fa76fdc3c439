import datetime

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from models.session import DEFAULT_DURATION_MINUTES, DEFAULT_LOCATION, MIN_DURATION_MINUTES


def _to_utc(value):
    # Stored as naive UTC; SQLite drops tzinfo on write.
    if value is not None and value.tzinfo is not None:
        return value.astimezone(datetime.UTC)
    return value


class SessionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    case_id: int
    title: str = Field(min_length=1)
    scheduled_date: datetime.datetime
    duration_minutes: int = Field(default=DEFAULT_DURATION_MINUTES, ge=MIN_DURATION_MINUTES)
    description: str | None = None
    location: str = DEFAULT_LOCATION
    meeting_link: str | None = None

    _submitted_date: str | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def keep_submitted_date(cls, data, handler):
        model = handler(data)
        if isinstance(data, dict) and isinstance(data.get("scheduled_date"), str):
            model._submitted_date = data["scheduled_date"].strip()
        return model

    @property
    def scheduled_label(self) -> str:
        """The scheduled date as the caller wrote it, for the audit trail."""
        return self._submitted_date or self.scheduled_date.isoformat()

    @field_validator("location", mode="before")
    @classmethod
    def default_location(cls, value):
        return value or DEFAULT_LOCATION

    @field_validator("scheduled_date")
    @classmethod
    def to_utc(cls, value):
        return _to_utc(value)


class SessionUpdate(BaseModel):
    """Sparse patch: only fields present in the request body are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    scheduled_date: datetime.datetime | None = None
    duration_minutes: int | None = Field(default=None, ge=MIN_DURATION_MINUTES)
    status: str | None = Field(default=None, min_length=1)
    location: str | None = None
    meeting_link: str | None = None
    notes: str | None = None

    @field_validator("title", "scheduled_date", "duration_minutes", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("scheduled_date")
    @classmethod
    def to_utc(cls, value):
        return _to_utc(value)

    def patch(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ParticipantCreate(BaseModel):
    user_id: int


class ParticipantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    user_id: int
    name: str | None = None
    attendance_status: str


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_id: int
    session_number: int
    title: str
    description: str | None
    scheduled_date: datetime.datetime
    duration_minutes: int
    status: str
    location: str | None
    meeting_link: str | None
    notes: str | None
    completed_at: datetime.datetime | None
    created_at: datetime.datetime


class SessionWithParticipantsOut(SessionOut):
    participants: list[ParticipantOut] = []
