from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from campushub.models.events import EventStatus
from campushub.utils.dates import is_valid_date, is_valid_time

PHONE_PATTERN = r"^[0-9+\-() ]*$"


def _check_date(value: str | None) -> str | None:
    if value is not None and not is_valid_date(value):
        raise ValueError("Date must be a valid YYYY-MM-DD date.")
    return value


def _check_time(value: str | None) -> str | None:
    if value and not is_valid_time(value):
        raise ValueError("Time must look like 15:00 or 3:00 PM.")
    return value


# ---------- Event forms ----------
class EventForm(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    date: str
    time: str = ""
    venue: str = Field(min_length=1, max_length=200)
    type: str = ""
    cover_image_url: str = ""
    total_capacity: int = Field(ge=1)
    contact_name: str = ""
    contact_email: EmailStr | Literal[""] = ""
    contact_phone: str = Field(default="", pattern=PHONE_PATTERN)

    class Config:
        str_strip_whitespace = True
        extra = "forbid"

    @field_validator("date")
    @classmethod
    def check_date(cls, value):
        return _check_date(value)

    @field_validator("time")
    @classmethod
    def check_time(cls, value):
        return _check_time(value)


class EventUpdateForm(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    date: str | None = None
    time: str | None = None
    venue: str | None = Field(default=None, min_length=1, max_length=200)
    type: str | None = None
    cover_image_url: str | None = None
    total_capacity: int | None = Field(default=None, ge=1)
    contact_name: str | None = None
    contact_email: EmailStr | Literal[""] | None = None
    contact_phone: str | None = Field(default=None, pattern=PHONE_PATTERN)

    class Config:
        str_strip_whitespace = True
        extra = "forbid"

    @field_validator("date")
    @classmethod
    def check_date(cls, value):
        return _check_date(value)

    @field_validator("time")
    @classmethod
    def check_time(cls, value):
        return _check_time(value)


class PostponeRequest(BaseModel):
    date_time: str = Field(min_length=1, description='New schedule, e.g. "2025-12-01 15:00"')


class BulkCancelRequest(BaseModel):
    event_ids: list[str] = Field(min_length=1)


# ---------- Event responses ----------
class EventOut(BaseModel):
    id: str
    title: str
    description: str
    date: str
    time: str
    venue: str
    type: str
    cover_image_url: str
    total_capacity: int
    remaining_seats: int
    status: EventStatus
    contact_name: str
    contact_email: str
    contact_phone: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EventStatsOut(BaseModel):
    event_id: str
    total_capacity: int
    registered_count: int
    remaining_seats: int
    status: str


class BulkCancelItem(BaseModel):
    event_id: str
    ok: bool
    code: str | None = None
    message: str | None = None


class BulkCancelOut(BaseModel):
    cancelled: list[str]
    failed: list[BulkCancelItem]
