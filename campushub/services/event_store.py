import uuid
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from campushub.models.events import EDITABLE_FIELDS, Event, EventStatus, utcnow
from campushub.services import capacity
from campushub.services.errors import (
    CapacityViolationError,
    EventNotFoundError,
    ValidationError,
)
from campushub.services.transitions import Action, next_status
from campushub.services.validation import errors_from_pydantic


def _validation_error(exc: PydanticValidationError) -> ValidationError:
    return ValidationError("Invalid event data.", errors=errors_from_pydantic(exc))


def _check_capacity(value: Any) -> int:
    # bool is an int subclass but never a capacity
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            "Total capacity must be an integer.",
            errors={"total_capacity": "Total capacity must be an integer."},
        )
    if value <= 0:
        raise ValidationError(
            "Total capacity must be greater than 0.",
            errors={"total_capacity": "Total capacity must be greater than 0."},
        )
    return value


class EventStore:
    """Authoritative event records keyed by id, kept in insertion order."""

    def __init__(self, active_count: Callable[[str], int] = lambda event_id: 0):
        self._events: dict[str, Event] = {}
        self._active_count = active_count

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._events

    def _require(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise EventNotFoundError(f"Event '{event_id}' not found.", event_id=event_id)
        return event

    def _reject_unknown(self, fields: Mapping[str, Any]) -> None:
        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Fields cannot be set directly: {', '.join(unknown)}.",
                errors={name: "This field cannot be set directly." for name in unknown},
            )

    def create(self, data: Mapping[str, Any]) -> Event:
        self._reject_unknown(data)
        if "total_capacity" not in data:
            raise ValidationError(
                "Total capacity is required.", errors={"total_capacity": "Total capacity is required."}
            )
        total = _check_capacity(data["total_capacity"])
        try:
            event = Event.model_validate(
                {
                    **data,
                    "id": uuid.uuid4().hex,
                    "status": EventStatus.UPCOMING,
                    "remaining_seats": total,
                }
            )
        except PydanticValidationError as e:
            raise _validation_error(e) from None
        self._events[event.id] = event
        return event.model_copy()

    def update(self, event_id: str, fields: Mapping[str, Any]) -> Event:
        current = self._require(event_id)
        status = next_status(current, Action.UPDATE)
        self._reject_unknown(fields)
        if "total_capacity" in fields:
            _check_capacity(fields["total_capacity"])

        active = self._active_count(event_id)
        new_total = fields.get("total_capacity", current.total_capacity)
        if new_total < active:
            raise CapacityViolationError(
                f"Cannot reduce capacity to {new_total}: {active} students are already registered.",
                event_id=event_id,
                total_capacity=new_total,
                active_count=active,
            )

        data = current.model_dump()
        data.update(fields)
        data.update(status=status, remaining_seats=max(0, new_total - active), updated_at=utcnow())
        try:
            updated = Event.model_validate(data)
        except PydanticValidationError as e:
            raise _validation_error(e) from None
        self._events[event_id] = updated
        return updated.model_copy()

    def apply_transition(self, event_id: str, action: Action, **fields: Any) -> Event:
        """Move an event along the lifecycle table, setting ``fields`` on the way."""
        current = self._require(event_id)
        status = next_status(current, action)
        updated = current.model_copy(update={**fields, "status": status, "updated_at": utcnow()})
        self._events[event_id] = updated
        return updated.model_copy()

    def refresh_seats(self, event_id: str) -> int:
        event = self._require(event_id)
        event.remaining_seats = capacity.recompute(event, self._active_count(event_id))
        return event.remaining_seats

    def require(self, event_id: str) -> Event:
        return self._require(event_id).model_copy()

    def get(self, event_id: str) -> Event | None:
        event = self._events.get(event_id)
        return event.model_copy() if event else None

    def load(self, items: list[dict]) -> list[str]:
        """
        Replace the store with persisted events.

        The stored ``remaining_seats`` is only a hint for drift reporting;
        when it is missing or not a non-negative integer the event loads
        with 0 and its id is returned so the caller recomputes and rewrites it.
        """
        events, unusable = [], []
        for item in items or []:
            if isinstance(item, dict):
                seats = item.get("remaining_seats")
                if isinstance(seats, bool) or not isinstance(seats, int) or seats < 0:
                    item = {**item, "remaining_seats": 0}
                    unusable.append(item.get("id"))
            events.append(Event.model_validate(item))
        self._events = {event.id: event for event in events}
        return unusable

    def dump(self) -> list[dict]:
        return [event.model_dump(mode="json") for event in self._events.values()]

    def list(self) -> list[Event]:
        return [event.model_copy() for event in self._events.values()]
