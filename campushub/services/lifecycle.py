"""
The event/registration core.

``LifecycleManager`` owns the event store, the registration log and the
student-side stores, and is the only writer to them. Every public operation
runs its read-validate-write steps under one lock against the current
in-memory state, then hands the combined snapshot to the snapshot writer and
notifies subscribers. Expected failures come back as ``Failure`` results.

The in-memory commit happens before the snapshot is written. A failed write
is logged and the mutation stands; because every write is the whole
snapshot, the next mutation (or ``start``/``close``) persists it again.
"""
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from campushub.models.events import Event
from campushub.models.registrations import Registration
from campushub.models.students import StudentProfile
from campushub.services import capacity
from campushub.services.errors import CampusHubError, PersistenceError, ValidationError
from campushub.services.event_store import EventStore
from campushub.services.gateways import (
    CAMPUSHUB_EVENTS,
    CAMPUSHUB_INTERESTED,
    CAMPUSHUB_REGISTRATIONS,
    CAMPUSHUB_STUDENTS,
    PersistenceGateway,
    unwrap_collection,
)
from campushub.services.interests import InterestRegistry, MyDayEntry, my_day
from campushub.services.registration_log import RegistrationLog
from campushub.services.results import Failure, Ok, Result
from campushub.services.roster import Participant, ParticipantRoster
from campushub.services.snapshots import InlineSnapshotWriter, Snapshot
from campushub.services.students import StudentDirectory
from campushub.services.transitions import Action, next_status
from campushub.services.validation import validate_student_form
from campushub.utils.dates import is_valid_date, split_date_time

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[Snapshot], None]


class LifecycleManager:
    def __init__(self, gateway: PersistenceGateway, writer=None):
        self.gateway = gateway
        self.writer = writer or InlineSnapshotWriter(gateway)
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._revision = 0
        self._dirty = False
        self._started = False
        self._over_capacity: list[str] = []

        self.events = EventStore(active_count=lambda event_id: self.registrations.active_count(event_id))
        self.registrations = RegistrationLog(self.events)
        self.students = StudentDirectory()
        self.interests = InterestRegistry(self.events)
        self.roster = ParticipantRoster(self.events, self.registrations, self.students)

    # ---------- lifecycle ----------
    @property
    def revision(self) -> int:
        return self._revision

    @property
    def dirty(self) -> bool:
        return self._dirty

    def start(self) -> None:
        """Load the persisted snapshot and reconcile remaining seats with the log."""
        with self._lock:
            if self._started:
                return
            stored = {
                key: unwrap_collection(self.gateway.load(key), default)
                for key, default in (
                    (CAMPUSHUB_EVENTS, []),
                    (CAMPUSHUB_REGISTRATIONS, []),
                    (CAMPUSHUB_STUDENTS, []),
                    (CAMPUSHUB_INTERESTED, {}),
                )
            }
            try:
                unusable = self.events.load(stored[CAMPUSHUB_EVENTS][1])
                self.registrations.load(stored[CAMPUSHUB_REGISTRATIONS][1])
                self.students.load(stored[CAMPUSHUB_STUDENTS][1])
                self.interests.load(stored[CAMPUSHUB_INTERESTED][1])
            except PydanticValidationError as e:
                raise PersistenceError("Stored snapshot is malformed.") from e

            revisions = {revision for revision, _ in stored.values()}
            self._revision = max(revisions)
            drifted = capacity.reconcile(self.events, self.registrations)
            self._over_capacity = capacity.over_capacity(self.events, self.registrations)
            self._started = True
            logger.info(
                "Loaded snapshot",
                extra={
                    "revision": self._revision,
                    "events": len(self.events),
                    "registrations": len(self.registrations),
                    "over_capacity": self._over_capacity,
                },
            )
            # collections saved at different revisions mean an earlier write was partial
            if drifted or unusable or len(revisions) > 1:
                self._commit()

    def close(self) -> None:
        with self._lock:
            if self._dirty:
                self._commit()
            self._listeners.clear()
            self._started = False

    @property
    def over_capacity(self) -> list[str]:
        """Ids of events the loaded log had overbooked; new registrations stay closed until seats free up."""
        return list(self._over_capacity)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener`` with every committed snapshot; returns an unsubscribe function.

        Listeners run under the writer lock, so they see revisions in commit order.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                revision=self._revision,
                collections={
                    CAMPUSHUB_EVENTS: self.events.dump(),
                    CAMPUSHUB_REGISTRATIONS: self.registrations.dump(),
                    CAMPUSHUB_STUDENTS: self.students.dump(),
                    CAMPUSHUB_INTERESTED: self.interests.dump(),
                },
            )

    def _commit(self) -> Snapshot:
        self._revision += 1
        snapshot = self.snapshot()
        try:
            self.writer.write(snapshot)
        except PersistenceError as e:
            self._dirty = True
            logger.error(
                "Snapshot write failed, will retry on next mutation",
                extra={"revision": snapshot.revision, "error": e.message},
            )
        else:
            self._dirty = False
        return snapshot

    def _notify(self, snapshot: Snapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed", extra={"revision": snapshot.revision})

    def _mutate(self, operation: str, fn: Callable[[], T]) -> Result[T]:
        with self._lock:
            try:
                value = fn()
            except CampusHubError as e:
                logger.info("%s rejected: %s", operation, e.code, extra={"context": e.context})
                return Failure.from_error(e)
            snapshot = self._commit()
            logger.debug("%s committed", operation, extra={"revision": snapshot.revision})
            self._notify(snapshot)
        return Ok(value)

    def _read(self, fn: Callable[[], T]) -> Result[T]:
        with self._lock:
            try:
                return Ok(fn())
            except CampusHubError as e:
                return Failure.from_error(e)

    # ---------- admin: events ----------
    def create_event(self, data: Mapping[str, Any]) -> Result[Event]:
        return self._mutate("create_event", lambda: self.events.create(data))

    def update_event(self, event_id: str, data: Mapping[str, Any]) -> Result[Event]:
        return self._mutate("update_event", lambda: self.events.update(event_id, data))

    def postpone_event(self, event_id: str, new_date: str, new_time: str | None = None) -> Result[Event]:
        """
        Move an upcoming or postponed event to a new schedule.

        ``new_date`` may carry both parts ("2025-12-01 15:00") when
        ``new_time`` is omitted.
        """
        if new_time is None:
            new_date, new_time = split_date_time(new_date)

        def postpone() -> Event:
            next_status(self.events.require(event_id), Action.POSTPONE)
            errors = {}
            if not (new_date or "").strip():
                errors["date"] = "A new date is required."
            elif not is_valid_date(new_date):
                errors["date"] = "Date must be a valid YYYY-MM-DD date."
            if not (new_time or "").strip():
                errors["time"] = "A new time is required."
            if errors:
                raise ValidationError("Invalid postponement.", errors=errors, event_id=event_id)
            return self.events.apply_transition(
                event_id, Action.POSTPONE, date=new_date.strip(), time=new_time.strip()
            )

        return self._mutate("postpone_event", postpone)

    def cancel_event(self, event_id: str) -> Result[Event]:
        return self._mutate("cancel_event", lambda: self.events.apply_transition(event_id, Action.CANCEL))

    def cancel_events(self, event_ids: Iterable[str]) -> dict[str, Result[Event]]:
        """
        Cancel several events, each in its own transaction.

        A failure on one id does not roll back the others; the returned
        mapping says which ids were cancelled.
        """
        outcomes = {event_id: self.cancel_event(event_id) for event_id in dict.fromkeys(event_ids)}
        failed = [event_id for event_id, result in outcomes.items() if not result.ok]
        if failed:
            logger.warning(
                "Bulk cancel partially failed",
                extra={"failed": failed, "requested": len(outcomes)},
            )
        return outcomes

    def get_event(self, event_id: str) -> Result[Event]:
        return self._read(lambda: self.events.require(event_id))

    def list_events(self) -> Result[list[Event]]:
        return self._read(self.events.list)

    def get_registered_count(self, event_id: str) -> Result[int]:
        def count() -> int:
            self.events.require(event_id)
            return self.registrations.active_count(event_id)

        return self._read(count)

    # ---------- registrations ----------
    def register_for_event(self, event_id: str, student_id: str) -> Result[Registration]:
        return self._mutate(
            "register_for_event", lambda: self.registrations.register(event_id, student_id)
        )

    def unregister(self, event_id: str, student_id: str) -> Result[Registration]:
        return self._mutate("unregister", lambda: self.registrations.remove(event_id, student_id))

    def remove_participant(self, event_id: str, student_id: str) -> Result[Registration]:
        return self._mutate(
            "remove_participant", lambda: self.roster.remove_participant(event_id, student_id)
        )

    def get_participants(self, event_id: str) -> Result[list[Participant]]:
        return self._read(lambda: self.roster.participants(event_id))

    def get_registration_history(self, event_id: str) -> Result[list[Registration]]:
        def history() -> list[Registration]:
            self.events.require(event_id)
            return self.registrations.history(event_id)

        return self._read(history)

    # ---------- students ----------
    def save_student_profile(self, raw: Mapping[str, Any]) -> Result[StudentProfile]:
        def save() -> StudentProfile:
            result = validate_student_form(raw)
            if not result.is_valid:
                raise ValidationError("Invalid student profile.", errors=result.errors)
            return self.students.upsert(StudentProfile.model_validate(result.data))

        return self._mutate("save_student_profile", save)

    def get_student_profile(self, student_id: str) -> StudentProfile | None:
        with self._lock:
            return self.students.get(student_id)

    def list_student_events(self, student_id: str) -> Result[list[Event]]:
        def registered() -> list[Event]:
            ids = [r.event_id for r in self.registrations.list_for_student(student_id)]
            return [e for e in (self.events.get(eid) for eid in ids) if e]

        return self._read(registered)

    def toggle_interest(self, student_id: str, event_id: str) -> Result[bool]:
        return self._mutate("toggle_interest", lambda: self.interests.toggle(student_id, event_id))

    def list_interests(self, student_id: str) -> Result[list[Event]]:
        return self._read(lambda: self.interests.events(student_id))

    def my_day(self, student_id: str, today: date | None = None) -> Result[list[MyDayEntry]]:
        def entries() -> list[MyDayEntry]:
            registered = {r.event_id for r in self.registrations.list_for_student(student_id)}
            interested = set(self.interests.event_ids(student_id))
            return my_day(self.events.list(), registered, interested, today)

        return self._read(entries)
