from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from api.errors import ApiError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Uniform outcome of every mutating operation.

    Fields:
      - success: whether the operation took effect
      - message: text meant for the user, present on failure and sometimes on success
      - kind: "validation" | "server" | "network" | "parse" when success is False
      - value: payload of a successful operation (an order id, a product, ...)
    """

    success: bool
    message: Optional[str] = None
    kind: Optional[ErrorKind] = None
    value: Optional[T] = None

    @classmethod
    def ok(cls, value: Optional[T] = None, message: Optional[str] = None) -> Result[T]:
        return cls(True, message=message, value=value)

    @classmethod
    def fail(cls, message: str, kind: ErrorKind = "validation") -> Result[T]:
        return cls(False, message=message, kind=kind)

    @classmethod
    def from_error(cls, exc: ApiError) -> Result[T]:
        return cls(False, message=exc.message, kind=exc.kind)

    def __bool__(self) -> bool:
        return self.success
