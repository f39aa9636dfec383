import logging
import uuid

from campushub.models.events import utcnow
from campushub.models.registrations import Registration, RegistrationStatus
from campushub.services.errors import (
    DuplicateRegistrationError,
    EventFullError,
    NotRegisteredError,
)
from campushub.services.event_store import EventStore
from campushub.services.transitions import Action, next_status

logger = logging.getLogger(__name__)


class RegistrationLog:
    """
    Append-only log of registrations.

    Removing a registration marks it ``removed`` and keeps the record; the
    ``_active`` index holds the single active registration per
    ``(event_id, student_id)`` pair.
    """

    def __init__(self, events: EventStore):
        self._events = events
        self._records: list[Registration] = []
        self._active: dict[tuple[str, str], Registration] = {}

    def __len__(self) -> int:
        return len(self._records)

    def register(self, event_id: str, student_id: str) -> Registration:
        event = self._events.require(event_id)
        next_status(event, Action.REGISTER)
        if (event_id, student_id) in self._active:
            raise DuplicateRegistrationError(
                f"Student '{student_id}' is already registered for '{event.title}'.",
                event_id=event_id,
                student_id=student_id,
            )
        if event.remaining_seats <= 0:
            raise EventFullError(f"Event '{event.title}' is full.", event_id=event_id)

        registration = Registration(id=uuid.uuid4().hex, event_id=event_id, student_id=student_id)
        self._records.append(registration)
        self._active[(event_id, student_id)] = registration
        self._events.refresh_seats(event_id)
        return registration.model_copy()

    def remove(self, event_id: str, student_id: str) -> Registration:
        registration = self._active.pop((event_id, student_id), None)
        if registration is None:
            raise NotRegisteredError(
                f"Student '{student_id}' is not registered for event '{event_id}'.",
                event_id=event_id,
                student_id=student_id,
            )
        registration.status = RegistrationStatus.REMOVED
        registration.removed_at = utcnow()
        if event_id in self._events:
            self._events.refresh_seats(event_id)
        return registration.model_copy()

    def is_registered(self, event_id: str, student_id: str) -> bool:
        return (event_id, student_id) in self._active

    def active_count(self, event_id: str) -> int:
        return sum(1 for (eid, _student) in self._active if eid == event_id)

    def list_active(self, event_id: str) -> list[Registration]:
        active = [r for r in self._active.values() if r.event_id == event_id]
        return [r.model_copy() for r in sorted(active, key=lambda r: r.registered_at)]

    def list_for_student(self, student_id: str) -> list[Registration]:
        active = [r for r in self._active.values() if r.student_id == student_id]
        return [r.model_copy() for r in sorted(active, key=lambda r: r.registered_at)]

    def history(self, event_id: str) -> list[Registration]:
        """Every registration ever made for an event, removed ones included."""
        return [r.model_copy() for r in self._records if r.event_id == event_id]

    def load(self, items: list[dict]) -> None:
        records = [Registration.model_validate(item) for item in items or []]
        active: dict[tuple[str, str], Registration] = {}
        for record in sorted(records, key=lambda r: r.registered_at):
            if not record.is_active:
                continue
            pair = (record.event_id, record.student_id)
            if pair in active:
                logger.warning(
                    "Duplicate active registration on load, keeping the earliest",
                    extra={"event_id": record.event_id, "student_id": record.student_id},
                )
                record.status = RegistrationStatus.REMOVED
                record.removed_at = utcnow()
                continue
            active[pair] = record
        self._records = records
        self._active = active

    def dump(self) -> list[dict]:
        return [r.model_dump(mode="json") for r in self._records]
