from datetime import datetime

from pydantic import BaseModel

from campushub.models.registrations import Registration
from campushub.services.event_store import EventStore
from campushub.services.registration_log import RegistrationLog
from campushub.services.students import StudentDirectory

# Only these profile fields ever reach an admin's participant list.
PARTICIPANT_FIELDS = frozenset({"name", "roll_number", "branch", "year"})


class Participant(BaseModel):
    id: str
    student_id: str
    name: str | None = None
    roll_number: str | None = None
    branch: str | None = None
    year: int | None = None
    registered_at: datetime


class ParticipantRoster:
    def __init__(self, events: EventStore, registrations: RegistrationLog, students: StudentDirectory):
        self._events = events
        self._registrations = registrations
        self._students = students

    def participants(self, event_id: str) -> list[Participant]:
        self._events.require(event_id)
        return [self._to_participant(r) for r in self._registrations.list_active(event_id)]

    def remove_participant(self, event_id: str, student_id: str) -> Registration:
        self._events.require(event_id)
        return self._registrations.remove(event_id, student_id)

    def _to_participant(self, registration: Registration) -> Participant:
        profile = self._students.get(registration.student_id)
        identity = profile.model_dump(include=PARTICIPANT_FIELDS) if profile else {}
        return Participant(
            id=registration.id,
            student_id=registration.student_id,
            registered_at=registration.registered_at,
            **identity,
        )
