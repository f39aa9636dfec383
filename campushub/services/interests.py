from dataclasses import dataclass
from datetime import date

from campushub.models.events import Event, EventStatus
from campushub.services.event_store import EventStore
from campushub.utils.dates import is_today, time_sort_key


class InterestRegistry:
    """Per-student set of events marked as interesting."""

    def __init__(self, events: EventStore):
        self._events = events
        self._interests: dict[str, list[str]] = {}

    def toggle(self, student_id: str, event_id: str) -> bool:
        """Flip interest in an event; returns whether the student is now interested."""
        self._events.require(event_id)
        marked = self._interests.setdefault(student_id, [])
        if event_id in marked:
            marked.remove(event_id)
            if not marked:
                del self._interests[student_id]
            return False
        marked.append(event_id)
        return True

    def event_ids(self, student_id: str) -> list[str]:
        return list(self._interests.get(student_id, []))

    def events(self, student_id: str) -> list[Event]:
        return [e for e in (self._events.get(eid) for eid in self.event_ids(student_id)) if e]

    def load(self, items: dict[str, list[str]]) -> None:
        self._interests = {sid: list(ids) for sid, ids in (items or {}).items() if ids}

    def dump(self) -> dict[str, list[str]]:
        return {sid: list(ids) for sid, ids in self._interests.items()}


@dataclass(frozen=True)
class MyDayEntry:
    event: Event
    reason: str  # "registered" or "interested"


def my_day(
    events: list[Event],
    registered_ids: set[str],
    interested_ids: set[str],
    today: date | None = None,
) -> list[MyDayEntry]:
    """Today's events a student is registered for or interested in, ordered by time."""
    entries = []
    for event in events:
        if event.status == EventStatus.CANCELLED or not is_today(event.date, today):
            continue
        if event.id in registered_ids:
            entries.append(MyDayEntry(event=event, reason="registered"))
        elif event.id in interested_ids:
            entries.append(MyDayEntry(event=event, reason="interested"))
    return sorted(entries, key=lambda entry: time_sort_key(entry.event.time))
