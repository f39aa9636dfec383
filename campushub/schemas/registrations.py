from datetime import datetime

from pydantic import BaseModel, Field

from campushub.models.registrations import RegistrationStatus


class BookRequest(BaseModel):
    student_id: str = Field(min_length=1)
    event_id: str = Field(min_length=1)


class RegistrationOut(BaseModel):
    id: str
    event_id: str
    student_id: str
    status: RegistrationStatus
    registered_at: datetime
    removed_at: datetime | None = None

    class Config:
        from_attributes = True


class ParticipantOut(BaseModel):
    id: str
    student_id: str
    name: str | None = None
    roll_number: str | None = None
    branch: str | None = None
    year: int | None = None
    registered_at: datetime

    class Config:
        from_attributes = True
