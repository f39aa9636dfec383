from fastapi import HTTPException, Request

from campushub.services.errors import EventNotFoundError, ValidationError
from campushub.services.lifecycle import LifecycleManager
from campushub.services.results import Failure, Result

STATUS_BY_CODE = {
    ValidationError.code: 422,
    EventNotFoundError.code: 404,
}


def get_core(request: Request) -> LifecycleManager:
    return request.app.state.core


def failure_to_http(failure: Failure) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CODE.get(failure.code, 409),
        detail={"code": failure.code, "message": failure.message, "errors": failure.errors},
    )


def unwrap(result: Result):
    if not result.ok:
        raise failure_to_http(result)
    return result.value
