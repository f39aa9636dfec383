from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from campushub.services.errors import CampusHubError, ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    code: str
    message: str
    errors: dict[str, str] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    ok: bool = field(default=False, init=False)

    @classmethod
    def from_error(cls, exc: CampusHubError) -> "Failure":
        errors = exc.errors if isinstance(exc, ValidationError) else {}
        return cls(code=exc.code, message=exc.message, errors=dict(errors), context=dict(exc.context))


Result = Union[Ok[T], Failure]
