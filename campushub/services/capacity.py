import logging

from campushub.models.events import Event

logger = logging.getLogger(__name__)


def recompute(event: Event, active_count: int) -> int:
    """Remaining seats of ``event`` given its number of active registrations."""
    return max(0, event.total_capacity - active_count)


def over_capacity(events, registrations) -> list[str]:
    """Ids of events holding more active registrations than their capacity."""
    return [
        event.id
        for event in events.list()
        if registrations.active_count(event.id) > event.total_capacity
    ]


def reconcile(events, registrations) -> list[str]:
    """
    Recompute remaining seats of every event from the registration log.

    Returns the ids of events whose stored value disagreed with the log;
    those are corrected in place.
    """
    drifted = []
    for event in events.list():
        active = registrations.active_count(event.id)
        expected = recompute(event, active)
        if active > event.total_capacity:
            logger.warning(
                "Event is over capacity",
                extra={"event_id": event.id, "total_capacity": event.total_capacity, "active": active},
            )
        if expected != event.remaining_seats:
            logger.warning(
                "Remaining seats drifted from registration log",
                extra={"event_id": event.id, "stored": event.remaining_seats, "expected": expected},
            )
            drifted.append(event.id)
        events.refresh_seats(event.id)
    return drifted
