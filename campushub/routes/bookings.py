from fastapi import APIRouter, Depends

from campushub.routes.deps import get_core, unwrap
from campushub.schemas.registrations import BookRequest, RegistrationOut
from campushub.services.lifecycle import LifecycleManager

router = APIRouter(prefix="/book", tags=["bookings"])


@router.post("", response_model=RegistrationOut)
def book_seat(payload: BookRequest, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.register_for_event(payload.event_id, payload.student_id))


@router.delete("", response_model=RegistrationOut)
def cancel_booking(payload: BookRequest, core: LifecycleManager = Depends(get_core)):
    return unwrap(core.unregister(payload.event_id, payload.student_id))
