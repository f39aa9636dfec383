from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from campushub.routes.deps import get_core, unwrap
from campushub.schemas.events import EventOut
from campushub.schemas.students import InterestOut, MyDayEntryOut, StudentOut
from campushub.services.lifecycle import LifecycleManager

router = APIRouter(prefix="/students", tags=["students"])


@router.put("/{student_id}", response_model=StudentOut)
def save_profile(
    student_id: str, payload: dict[str, Any] = Body(...), core: LifecycleManager = Depends(get_core)
):
    return unwrap(core.save_student_profile({**payload, "id": student_id}))


@router.get("/{student_id}", response_model=StudentOut)
def get_profile(student_id: str, core: LifecycleManager = Depends(get_core)):
    profile = core.get_student_profile(student_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return profile


@router.get("/{student_id}/events", response_model=list[EventOut])
def registered_events(student_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.list_student_events(student_id))


@router.post("/{student_id}/interests/{event_id}", response_model=InterestOut)
def toggle_interest(student_id: str, event_id: str, core: LifecycleManager = Depends(get_core)):
    interested = unwrap(core.toggle_interest(student_id, event_id))
    return InterestOut(event_id=event_id, interested=interested)


@router.get("/{student_id}/interests", response_model=list[EventOut])
def interests(student_id: str, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.list_interests(student_id))


@router.get("/{student_id}/my-day", response_model=list[MyDayEntryOut])
def my_day(student_id: str, day: date | None = None, core: LifecycleManager = Depends(get_core)):
    entries = unwrap(core.my_day(student_id, today=day))
    return [{"event": entry.event.model_dump(), "reason": entry.reason} for entry in entries]
