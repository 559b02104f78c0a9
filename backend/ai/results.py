# backend/ai/results.py
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

OK = "ok"
MALFORMED = "malformed"
UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AIResult(Generic[T]):
    """
    Outcome of one AI text-service call: `ok` with a validated value,
    `malformed` when the model answered with something unusable, or
    `unavailable` when the provider could not be reached in time.
    """
    status: str
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "AIResult[T]":
        return cls(OK, value=value)

    @classmethod
    def malformed(cls, error: str) -> "AIResult[T]":
        return cls(MALFORMED, error=error)

    @classmethod
    def unavailable(cls, error: str) -> "AIResult[T]":
        return cls(UNAVAILABLE, error=error)

    @property
    def ok(self) -> bool:
        return self.status == OK
