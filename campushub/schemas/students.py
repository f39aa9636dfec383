from pydantic import BaseModel, EmailStr, Field

from campushub.schemas.events import PHONE_PATTERN, EventOut


class StudentForm(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=120)
    roll_number: str = Field(min_length=1, max_length=32)
    branch: str = Field(min_length=1, max_length=80)
    year: int = Field(ge=1, le=6)
    email: EmailStr
    phone: str = Field(default="", pattern=PHONE_PATTERN)

    class Config:
        str_strip_whitespace = True
        extra = "forbid"


class StudentOut(BaseModel):
    id: str
    name: str
    roll_number: str
    branch: str
    year: int
    email: str
    phone: str

    class Config:
        from_attributes = True


class InterestOut(BaseModel):
    event_id: str
    interested: bool


class MyDayEntryOut(BaseModel):
    event: EventOut
    reason: str

    class Config:
        from_attributes = True
