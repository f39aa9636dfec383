import enum
from datetime import datetime

from pydantic import BaseModel, Field

from campushub.models.events import utcnow


class RegistrationStatus(str, enum.Enum):
    ACTIVE = "active"
    REMOVED = "removed"


class Registration(BaseModel):
    id: str
    event_id: str
    student_id: str
    status: RegistrationStatus = RegistrationStatus.ACTIVE
    registered_at: datetime = Field(default_factory=utcnow)
    removed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == RegistrationStatus.ACTIVE
