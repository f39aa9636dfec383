from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from campushub.routes.deps import get_core, unwrap
from campushub.schemas.events import (
    BulkCancelItem,
    BulkCancelOut,
    BulkCancelRequest,
    EventOut,
    EventStatsOut,
    PostponeRequest,
)
from campushub.schemas.registrations import ParticipantOut, RegistrationOut
from campushub.services.lifecycle import LifecycleManager
from campushub.services.validation import validate_event_form
from campushub.utils.dates import sort_by_date

router = APIRouter(prefix="/event", tags=["events"])


def _validated(payload: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    result = validate_event_form(payload, partial=partial)
    if not result.is_valid:
        raise HTTPException(
            status_code=422,
            detail={"code": "validation_error", "message": "Invalid event data.", "errors": result.errors},
        )
    return result.data


@router.post("", response_model=EventOut)
def create_event(payload: dict[str, Any] = Body(...), core: LifecycleManager = Depends(get_core)):
    return unwrap(core.create_event(_validated(payload)))


@router.get("", response_model=list[EventOut])
def list_events(order: str | None = None, core: LifecycleManager = Depends(get_core)):
    events = unwrap(core.list_events())
    if order == "date":
        return sort_by_date(events)
    return events


@router.post("/cancel-many", response_model=BulkCancelOut)
def cancel_many(payload: BulkCancelRequest, core: LifecycleManager = Depends(get_core)):
    outcomes = core.cancel_events(payload.event_ids)
    return BulkCancelOut(
        cancelled=[event_id for event_id, result in outcomes.items() if result.ok],
        failed=[
            BulkCancelItem(event_id=event_id, ok=False, code=result.code, message=result.message)
            for event_id, result in outcomes.items()
            if not result.ok
        ],
    )


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.get_event(event_id))


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str, payload: dict[str, Any] = Body(...), core: LifecycleManager = Depends(get_core)
):
    return unwrap(core.update_event(event_id, _validated(payload, partial=True)))


@router.post("/{event_id}/postpone", response_model=EventOut)
def postpone_event(event_id: str, payload: PostponeRequest, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.postpone_event(event_id, payload.date_time))


@router.post("/{event_id}/cancel", response_model=EventOut)
def cancel_event(event_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.cancel_event(event_id))


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: str, core: LifecycleManager = Depends(get_core)):
    event = unwrap(core.get_event(event_id))
    registered = unwrap(core.get_registered_count(event_id))
    return EventStatsOut(
        event_id=event.id,
        total_capacity=event.total_capacity,
        registered_count=registered,
        remaining_seats=event.remaining_seats,
        status=event.status.value,
    )


@router.get("/{event_id}/participants", response_model=list[ParticipantOut])
def participants(event_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.get_participants(event_id))


@router.delete("/{event_id}/participants/{student_id}", response_model=RegistrationOut)
def remove_participant(event_id: str, student_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.remove_participant(event_id, student_id))


@router.get("/{event_id}/registrations", response_model=list[RegistrationOut])
def registration_history(event_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.get_registration_history(event_id))
