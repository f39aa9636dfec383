import enum
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class EventStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    id: str
    title: str
    description: str = ""
    date: str = ""
    time: str = ""
    venue: str = ""
    type: str = ""
    cover_image_url: str = ""
    total_capacity: int = Field(ge=1)
    # projection of total_capacity minus active registrations, never trusted on load
    remaining_seats: int = Field(ge=0)
    status: EventStatus = EventStatus.UPCOMING
    contact_name: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_cancelled(self) -> bool:
        return self.status == EventStatus.CANCELLED


# Fields an admin may change through update(); lifecycle fields go through
# postpone/cancel and remaining_seats is always derived.
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "date",
        "time",
        "venue",
        "type",
        "cover_image_url",
        "total_capacity",
        "contact_name",
        "contact_email",
        "contact_phone",
    }
)
