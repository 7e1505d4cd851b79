"""Tagged result type returned across component boundaries.

Run identity, run lifecycle, the normalizer and the synthesizer return
``Success`` or ``Failure`` instead of raising, so the orchestration layer can
decide per stage what to do with a failure.

Usage:
    result = await lifecycle.get_run(run_id)
    if isinstance(result, Failure):
        if result.code is ErrorCode.RUN_NOT_FOUND:
            ...
    else:
        record = result.data
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Typed failure codes."""

    NO_ORGANIZATION_IDENTIFIER = "NO_ORGANIZATION_IDENTIFIER"
    RUN_NOT_FOUND = "RUN_NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ORGANIZATION_REQUIRED = "ORGANIZATION_REQUIRED"
    SYNTHESIS_ERROR = "SYNTHESIS_ERROR"
    BRIEF_INVALID = "BRIEF_INVALID"
    STAGE_ERROR = "STAGE_ERROR"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying its payload."""

    data: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying a typed error code."""

    code: ErrorCode
    message: str
    details: Any = field(default=None)

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


Result = Union[Success[T], Failure]
