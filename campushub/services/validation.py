"""Form validation run before create/update requests reach the core."""
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from campushub.schemas.events import EventForm, EventUpdateForm
from campushub.schemas.students import StudentForm


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)


def errors_from_pydantic(exc: PydanticValidationError) -> dict[str, str]:
    """First message per top-level field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        name = str(err["loc"][0]) if err["loc"] else "__all__"
        errors.setdefault(name, err["msg"])
    return errors


def _validate(form: type[BaseModel], raw: Mapping[str, Any], **dump_options) -> ValidationResult:
    try:
        parsed = form.model_validate(dict(raw))
    except PydanticValidationError as e:
        return ValidationResult(is_valid=False, errors=errors_from_pydantic(e))
    return ValidationResult(is_valid=True, data=parsed.model_dump(**dump_options))


def validate_event_form(raw: Mapping[str, Any], partial: bool = False) -> ValidationResult:
    if partial:
        return _validate(EventUpdateForm, raw, exclude_unset=True, exclude_none=True)
    return _validate(EventForm, raw)


def validate_student_form(raw: Mapping[str, Any]) -> ValidationResult:
    return _validate(StudentForm, raw)
