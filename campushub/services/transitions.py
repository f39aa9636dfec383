import enum

from campushub.models.events import Event, EventStatus
from campushub.services.errors import EventCancelledError


class Action(str, enum.Enum):
    UPDATE = "update"
    POSTPONE = "postpone"
    CANCEL = "cancel"
    REGISTER = "register"


# (from, action) -> to. cancelled has no outgoing edges.
TRANSITIONS = {
    (EventStatus.UPCOMING, Action.UPDATE): EventStatus.UPCOMING,
    (EventStatus.UPCOMING, Action.POSTPONE): EventStatus.POSTPONED,
    (EventStatus.UPCOMING, Action.CANCEL): EventStatus.CANCELLED,
    (EventStatus.UPCOMING, Action.REGISTER): EventStatus.UPCOMING,
    (EventStatus.POSTPONED, Action.UPDATE): EventStatus.POSTPONED,
    (EventStatus.POSTPONED, Action.POSTPONE): EventStatus.POSTPONED,
    (EventStatus.POSTPONED, Action.CANCEL): EventStatus.CANCELLED,
    (EventStatus.POSTPONED, Action.REGISTER): EventStatus.POSTPONED,
}


def next_status(event: Event, action: Action) -> EventStatus:
    try:
        return TRANSITIONS[(event.status, action)]
    except KeyError:
        raise EventCancelledError(
            f"Event '{event.title}' is cancelled and cannot {action.value}.",
            event_id=event.id,
            action=action.value,
        ) from None
