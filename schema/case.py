import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["low", "medium", "high", "urgent"]
CaseStatus = Literal["pending", "active", "suspended", "resolved", "closed"]
PartyType = Literal["claimant", "respondent"]


class CaseCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    priority: Priority = "medium"


class CaseUpdate(BaseModel):
    """Sparse patch: only fields present in the request body are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: CaseStatus | None = None
    priority: Priority | None = None
    category: str | None = None
    assigned_mediator: int | None = None
    resolution_summary: str | None = None

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, value):
        # These columns are NOT NULL; an explicit null cannot clear them.
        if value is None:
            raise ValueError("may not be null")
        return value

    def patch(self) -> dict:
        return self.model_dump(exclude_unset=True)


class CaseFilter(BaseModel):
    status: str | None = None
    priority: str | None = None
    mediator_id: int | None = None


class PartyCreate(BaseModel):
    user_id: int
    party_type: PartyType
    organization: str | None = None
    representative: str | None = None


class CaseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_number: str
    title: str
    description: str | None
    category: str | None
    priority: str
    status: str
    created_by: int
    assigned_mediator: int | None
    resolution_summary: str | None
    resolution_date: datetime.datetime | None
    created_at: datetime.datetime
    updated_at: datetime.datetime | None = None
    creator_name: str | None = None
    mediator_name: str | None = None


class CaseDetailOut(CaseOut):
    creator_email: str | None = None
    mediator_email: str | None = None


class PartyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_id: int
    user_id: int
    party_type: str
    organization: str | None
    representative: str | None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_id: int
    user_id: int | None
    activity_type: str
    description: str
    created_at: datetime.datetime
    user_name: str | None = None
